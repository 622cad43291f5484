"""
canvas-mcp shared configuration, constants, and module-level state.
Standalone module — only imports the exception hierarchy.
"""

import os

from canvas_mcp.exceptions import SetupError

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)

ENV_PATH = os.path.join(_PROJECT_ROOT, ".env")
CWD_ENV_PATH = os.path.join(os.getcwd(), ".env")

# Keys that may also come from the process environment (containers, MCP host configs).
_ENV_KEYS = (
    "CANVAS_API_TOKEN",
    "CANVAS_DOMAIN",
    "CANVAS_HTTP_TIMEOUT_SECONDS",
    "CANVAS_HTTP_MAX_RETRIES",
    "CANVAS_HTTP_RETRY_BASE_SECONDS",
    "CANVAS_HTTP_MAX_RESPONSE_BYTES",
    "CANVAS_MAX_PAGES",
    "CANVAS_HTTP_LOG",
    "CANVAS_HTTP_LOG_SAMPLE_RATE",
)


def _read_env_file(path):
    values = {}
    if os.path.exists(path):
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    values[key.strip()] = val.strip()
    return values


def load_env():
    """Load settings from .env files, then let os.environ override known keys.

    The working-directory .env wins over the one at the project root.
    """
    env = {}
    env.update(_read_env_file(ENV_PATH))
    if os.path.abspath(CWD_ENV_PATH) != os.path.abspath(ENV_PATH):
        env.update(_read_env_file(CWD_ENV_PATH))
    for key in _ENV_KEYS:
        value = os.environ.get(key)
        if value:
            env[key] = value
    return env


def _env_bool(key, default=False):
    """Parse common boolean env formats."""
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default):
    """Parse integer env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key, default):
    """Parse float env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def normalize_domain(domain):
    """Strip scheme, whitespace and trailing slashes from a Canvas domain."""
    domain = (domain or "").strip()
    for prefix in ("https://", "http://"):
        if domain.lower().startswith(prefix):
            domain = domain[len(prefix) :]
    return domain.rstrip("/")


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "1.0.0"
SERVER_NAME = "canvas-mcp-server"
CONTRACT_SCHEMA_VERSION = "1.0"

API_PATH = "/api/v1"
DEFAULT_ENROLLMENT_ROLE = "StudentEnrollment"
DEFAULT_ENROLLMENT_STATE = "active"

# ---------------------------------------------------------------------------
# Module-level state (loaded from .env / environment)
# ---------------------------------------------------------------------------

env = load_env()

API_TOKEN = env.get("CANVAS_API_TOKEN", "")
DOMAIN = normalize_domain(env.get("CANVAS_DOMAIN", ""))
HTTP_TIMEOUT_SECONDS = _env_int("CANVAS_HTTP_TIMEOUT_SECONDS", 30)
HTTP_MAX_RETRIES = _env_int("CANVAS_HTTP_MAX_RETRIES", 0)
HTTP_RETRY_BASE_SECONDS = _env_float("CANVAS_HTTP_RETRY_BASE_SECONDS", 1.0)
HTTP_MAX_RESPONSE_BYTES = _env_int("CANVAS_HTTP_MAX_RESPONSE_BYTES", 10_000_000)
MAX_PAGES = _env_int("CANVAS_MAX_PAGES", 500)
HTTP_LOG_ENABLED = _env_bool("CANVAS_HTTP_LOG", False)
HTTP_LOG_SAMPLE_RATE = min(1.0, max(0.0, _env_float("CANVAS_HTTP_LOG_SAMPLE_RATE", 1.0)))


def require_credentials():
    """Return (token, domain) or raise SetupError naming what is missing."""
    missing = []
    if not API_TOKEN:
        missing.append("CANVAS_API_TOKEN")
    if not DOMAIN:
        missing.append("CANVAS_DOMAIN")
    if missing:
        raise SetupError(
            f"[SETUP_NEEDED] Please set {' and '.join(missing)} "
            "(environment variables or a .env file)."
        )
    return API_TOKEN, DOMAIN
