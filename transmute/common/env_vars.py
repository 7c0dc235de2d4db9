import os
import json
from typing import Optional


def load_bool(env_var, default: Optional[bool]) -> Optional[bool]:
    env_value = os.environ.get(env_var)
    if env_value is None:
        return default

    return json.loads(env_value.lower())


def load_optional_float(env_var) -> Optional[float]:
    env_value = os.environ.get(env_var)
    if env_value is None or env_value.strip() == "":
        return None
    return float(env_value)


TRANSMUTE_CONFIG_PATH = os.environ.get(
    "TRANSMUTE_CONFIG_PATH", os.path.expanduser("~/.transmute/config.yaml")
)

DEFAULT_PROVIDER = os.environ.get("TRANSMUTE_DEFAULT_PROVIDER", "openai")

# Content fetching
HTTP_TIMEOUT = int(os.environ.get("TRANSMUTE_HTTP_TIMEOUT", 30))
CONNECT_TIMEOUT = int(os.environ.get("TRANSMUTE_CONNECT_TIMEOUT", 10))
USER_AGENT = os.environ.get("TRANSMUTE_USER_AGENT", "Transmute/1.0")
RETRY_ATTEMPTS = int(os.environ.get("TRANSMUTE_RETRY_ATTEMPTS", 3))
RETRY_DELAY_MS = int(os.environ.get("TRANSMUTE_RETRY_DELAY", 1000))
HTML_TO_MARKDOWN = load_bool("TRANSMUTE_HTML_TO_MARKDOWN", False)
ALLOW_LOCALHOST = load_bool("TRANSMUTE_ALLOW_LOCALHOST", False)
MAX_CONTENT_LENGTH = int(
    os.environ.get("TRANSMUTE_MAX_CONTENT_LENGTH", 10485760)
)  # 10MB

# Async transformation
ASYNC_QUEUE = os.environ.get("TRANSMUTE_ASYNC_QUEUE", "default")
QUEUE_CONNECTION = os.environ.get("TRANSMUTE_QUEUE_CONNECTION") or None
JOB_TIMEOUT = int(os.environ.get("TRANSMUTE_TIMEOUT", 60))
JOB_TRIES = int(os.environ.get("TRANSMUTE_TRIES", 3))

# Caching
CACHE_ENABLED = load_bool("TRANSMUTE_CACHE_ENABLED", True)
CACHE_STORE = os.environ.get("TRANSMUTE_CACHE_STORE", "default")
CACHE_PREFIX = os.environ.get("TRANSMUTE_CACHE_PREFIX", "transmute")
CONTENT_FETCH_CACHE_ENABLED = load_bool("TRANSMUTE_CONTENT_FETCH_CACHE_ENABLED", True)
CACHE_TTL_CONTENT = int(os.environ.get("TRANSMUTE_CACHE_TTL_CONTENT", 1800))
CACHE_TTL_TRANSFORMATIONS = int(
    os.environ.get("TRANSMUTE_CACHE_TTL_TRANSFORMATIONS", 3600)
)

# Rate limiting
RATE_LIMITING_ENABLED = load_bool("TRANSMUTE_RATE_LIMITING_ENABLED", False)
RATE_LIMIT_ATTEMPTS = int(os.environ.get("TRANSMUTE_RATE_LIMIT_ATTEMPTS", 60))
RATE_LIMIT_DECAY_MINUTES = int(os.environ.get("TRANSMUTE_RATE_LIMIT_DECAY", 1))
RATE_LIMIT_PREFIX = os.environ.get(
    "TRANSMUTE_RATE_LIMIT_PREFIX", "transmute_rate_limit"
)
