import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from copyscan.dependencies.auth import verify_token
from copyscan.errors import DetectionError, ErrorKind, RateLimited
from copyscan.logger import preview
from copyscan.schemas.detection_schemas import CheckTextRequest, CheckUrlRequest, DetectionResult
from copyscan.utils.detection_utils import PlagiarismDetector
from copyscan.utils.web_utils import GoogleSearchProvider, HttpContentExtractor

router = APIRouter(prefix="/plagiarism", tags=["plagiarism"])

logger = logging.getLogger("plagiarism_router")

_STATUS_BY_KIND = {
    ErrorKind.ANALYSIS: 422,
    ErrorKind.SEARCH: 502,
    ErrorKind.EXTRACTION: 502,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.DETECTION: 500,
}


@lru_cache(maxsize=1)
def get_detector() -> PlagiarismDetector:
    return PlagiarismDetector(GoogleSearchProvider(), HttpContentExtractor())


def _http_error(err: DetectionError) -> HTTPException:
    headers = None
    if isinstance(err, RateLimited):
        headers = {"Retry-After": str(err.retry_after)}
    return HTTPException(
        status_code=_STATUS_BY_KIND.get(err.kind, 500),
        detail={"code": err.kind.value, "message": err.message},
        headers=headers,
    )


@router.post("/check-text", response_model=DetectionResult)
async def check_text(
    payload: CheckTextRequest,
    current_user=Depends(verify_token),
    detector: PlagiarismDetector = Depends(get_detector),
):
    logger.info(f"🔍 Text check requested by {preview(current_user.get('sub', 'unknown'), 40)}")
    try:
        return await detector.check_text_content(payload.text, payload.options)
    except DetectionError as e:
        logger.error(f"❌ Text check failed ({e.kind.value}): {preview(e.message)}")
        raise _http_error(e)


@router.post("/check-url", response_model=DetectionResult)
async def check_url(
    payload: CheckUrlRequest,
    current_user=Depends(verify_token),
    detector: PlagiarismDetector = Depends(get_detector),
):
    logger.info(f"🔍 URL check requested for {preview(payload.url, 80)}")
    try:
        return await detector.check_url_content(payload.url, payload.options)
    except DetectionError as e:
        logger.error(f"❌ URL check failed ({e.kind.value}): {preview(e.message)}")
        raise _http_error(e)


@router.get("/health")
async def health(detector: PlagiarismDetector = Depends(get_detector)):
    return {**detector.health_check(), "info": detector.get_service_info()}
