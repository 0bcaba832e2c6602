"""
Centralized constants for the recordqa backend.

Every value reads from an environment variable with a default, so a local
run needs no configuration at all.
"""
import os
from datetime import datetime, timezone

# --- API Version ---
API_VERSION = os.getenv("RECORDQA_API_VERSION", "1.0.0")

# --- Logging ---
LOG_LEVEL = os.getenv("RECORDQA_LOG_LEVEL", "INFO")

# --- LLM Configuration ---
LLM_MODEL_NAME = os.getenv("LLM_MODEL_NAME", "gpt-4o-mini")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "")

# --- Document Store ---
STORE_BACKEND = os.getenv("RECORDQA_STORE_BACKEND", "memory")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
REDIS_KEY_PREFIX = os.getenv("RECORDQA_REDIS_KEY_PREFIX", "recordqa")

# --- Response Formatting ---
SUMMARY_VALUE_LIMIT = int(os.getenv("RECORDQA_SUMMARY_VALUE_LIMIT", "3"))
NARROW_LIST_LIMIT = int(os.getenv("RECORDQA_NARROW_LIST_LIMIT", "5"))

# --- Aggregation ---
NUMERIC_SAMPLE_SIZE = int(os.getenv("RECORDQA_NUMERIC_SAMPLE_SIZE", "5"))
AGGREGATE_EXCLUDE_ZERO = os.getenv("RECORDQA_AGGREGATE_EXCLUDE_ZERO", "true").lower() in ("1", "true", "yes")

# --- Ingestion ---
COLLECTION_NAME_MAX_LENGTH = int(os.getenv("RECORDQA_COLLECTION_NAME_MAX_LENGTH", "50"))

# --- CORS ---
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")


def utc_now() -> str:
    """Return current UTC time as ISO-8601 string with microseconds."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
