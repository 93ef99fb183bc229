import os
from dotenv import load_dotenv

load_dotenv()

# ───── Detection pipeline ─────
MAX_SEARCH_RESULTS = int(os.getenv("PLAGIARISM_MAX_SEARCH_RESULTS", "10"))
MAX_CONCURRENT_CHECKS = int(os.getenv("PLAGIARISM_MAX_CONCURRENT_CHECKS", "5"))
MIN_SIMILARITY_THRESHOLD = float(os.getenv("PLAGIARISM_MIN_SIMILARITY_THRESHOLD", "0.1"))
MAX_QUERIES_PER_CHECK = 5
MIN_PHRASE_LENGTH_PER_CHECK = 4
MAX_QUERIES_SEARCHED = 3

# Seconds between successive search queries / retrieval batches
QUERY_DELAY = float(os.getenv("PLAGIARISM_QUERY_DELAY", "0.5"))
BATCH_DELAY = float(os.getenv("PLAGIARISM_BATCH_DELAY", "1.0"))

# ───── Content analysis ─────
MIN_PHRASE_LENGTH = 3
MAX_PHRASE_LENGTH = 8
MAX_SEARCH_QUERIES = 10
MAX_PHRASE_TOKENS = 1000
MAX_KEY_PHRASES = 20
MAX_IMPORTANT_WORDS = 15
MAX_IMPORTANT_SENTENCES = 5

# ───── Similarity ─────
SHINGLE_SIZE = int(os.getenv("SIMILARITY_SHINGLE_SIZE", "3"))
SHINGLE_WEIGHT = float(os.getenv("SIMILARITY_SHINGLE_WEIGHT", "0.6"))
LCS_WEIGHT = float(os.getenv("SIMILARITY_LCS_WEIGHT", "0.4"))
MIN_SEGMENT_WORDS = 5
CONTEXT_WINDOW_WORDS = 12

# ───── Scoring thresholds ─────
HIGH_SIMILARITY_SCORE = 80
RISK_HIGH_THRESHOLD = 80
RISK_MEDIUM_THRESHOLD = 50
RISK_LOW_THRESHOLD = 20
EXACT_MATCH_THRESHOLD = 0.9
NEAR_EXACT_MATCH_THRESHOLD = 0.7
PARTIAL_MATCH_THRESHOLD = 0.5
MAX_MULTI_SOURCE_PENALTY = 10
MAX_HIGH_SIMILARITY_BONUS = 15
RATE_LIMIT_RETRY_AFTER = 60

# ───── Limits ─────
MAX_TEXT_LENGTH = int(os.getenv("PLAGIARISM_MAX_TEXT_LENGTH", "10000"))
MAX_URL_CONTENT_LENGTH = int(os.getenv("PLAGIARISM_MAX_URL_CONTENT_LENGTH", "50000"))
# A page of MAX_URL_CONTENT_LENGTH chars holds at most this many word tokens
MAX_COMPARE_TOKENS = MAX_URL_CONTENT_LENGTH // 2 + 1
REQUEST_TIMEOUT = int(os.getenv("PLAGIARISM_REQUEST_TIMEOUT", "15"))
LOG_PREVIEW_CHARS = 100

# ───── Search API ─────
GOOGLE_SEARCH_API_KEY = os.getenv("GOOGLE_SEARCH_API_KEY", "")
GOOGLE_SEARCH_ENGINE_ID = os.getenv("GOOGLE_SEARCH_ENGINE_ID", "")
GOOGLE_SEARCH_DAILY_LIMIT = int(os.getenv("GOOGLE_SEARCH_DAILY_LIMIT", "100"))

ALLOWED_URL_SCHEMES = {"http", "https"}
BLOCKED_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0", "::1", "169.254.169.254"}

# ───── Auth ─────
SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")
