from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from copyscan.logger import setup_logging
from copyscan.routers.plagiarism import router as plagiarism_router

logger = setup_logging()

app = FastAPI(title="copyscan")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(plagiarism_router)
