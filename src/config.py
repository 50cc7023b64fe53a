# config.py
# Runtime settings read from the environment. Game rules live in core.py.

import os


def _env_flag(name: str, default: bool = False) -> bool:
    """Read boolean env flag."""
    val = os.environ.get(name, "").strip().lower()
    if not val:
        return default
    return val in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    val = os.environ.get(name, "").strip()
    return int(val) if val else default


DEFAULT_GRID_SIZE = _env_int("NEON_DEFAULT_GRID_SIZE", 4)
WIN_TILE = _env_int("NEON_WIN_TILE", 2048)

# slowapi limit string applied to every endpoint
RATE_LIMIT = os.environ.get("NEON_RATE_LIMIT", "100/minute").strip()

ADVISOR_ENABLED = _env_flag("NEON_ADVISOR_ENABLED", default=True)
ADVISOR_MODEL = os.environ.get("NEON_ADVISOR_MODEL", "gpt-4o-mini").strip()
ADVISOR_BASE_URL = os.environ.get("NEON_ADVISOR_BASE_URL", "").strip() or None
ADVISOR_API_KEY = (
    os.environ.get("NEON_ADVISOR_API_KEY", "").strip()
    or os.environ.get("OPENAI_API_KEY", "").strip()
    or None
)
ADVISOR_TIMEOUT = float(os.environ.get("NEON_ADVISOR_TIMEOUT", "10"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
