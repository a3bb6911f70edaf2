"""
Configuration settings for the rent roll ingestion pipeline
"""
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off", "")


# OpenAI / LangChain Configuration
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
AI_ENABLED = _env_flag("RENT_ROLL_AI_ENABLED", True)
AI_MODEL = os.getenv("RENT_ROLL_MODEL", "gpt-4.1-nano")
AI_TIMEOUT_SECONDS = float(os.getenv("RENT_ROLL_AI_TIMEOUT", "30"))
AI_MAX_RETRIES = int(os.getenv("RENT_ROLL_AI_MAX_RETRIES", "1"))

# Detection Thresholds
HEADER_CONFIDENCE_THRESHOLD = 0.3  # below this a sheet is rejected
AI_HEADER_ACCEPT_CONFIDENCE = 0.7  # AI header results must exceed this
CLASSIFIER_MIN_CONFIDENCE = 0.5  # AI classifications below this use the keyword fallback
MIN_HEADER_MATCHES = 2
RENT_ROLL_INDICATOR_MINIMUM = 3

# Scan Limits
HEADER_SCAN_ROWS = 10
DATA_START_PROBE_ROWS = 4
CLASSIFIER_SAMPLE_ROWS = 20
CLASSIFIER_HEURISTIC_ROWS = 10
AI_HEADER_SAMPLE_ROWS = 100
CACHE_HASH_ROWS = 10

# Text Decoding
CSV_ENCODINGS = ["utf-8", "utf-16-le", "ascii", "latin-1"]
CSV_DELIMITERS = [",", ";", "\t", "|"]
DELIMITER_SAMPLE_LINES = 5
MAX_NON_PRINTABLE_RATIO = 0.1

# Date Sanity Window
MIN_VALID_YEAR = 1900
MAX_VALID_YEAR = 2100

# Detection Cache
CACHE_BACKEND = os.getenv("RENT_ROLL_CACHE", "memory")  # memory | duckdb | none
CACHE_TTL_SECONDS = 24 * 60 * 60
CACHE_DATABASE_PATH = os.getenv("RENT_ROLL_CACHE_PATH", "data/detection_cache.duckdb")

# Logging
LOG_LEVEL = os.getenv("RENT_ROLL_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Date Format
DATE_FORMAT = "%Y-%m-%d"

# Vocabulary file (header keywords, exclusion keywords)
MAPPINGS_PATH = os.path.join(os.path.dirname(__file__), "mappings.yaml")
