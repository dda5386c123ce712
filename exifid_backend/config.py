"""
Configuration for exifid.

Values are read once from the environment and used as defaults; callers pass
explicit values to `Identify` / `build_exif_service` to override them.
"""
import logging
import os

from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


# ImageMagick `identify` binary (name on PATH or absolute path)
IDENTIFY_BIN = _env_raw("EXIFID_IDENTIFY_PATH", "EXIFID_IDENTIFY_BIN", default="identify")
IDENTIFY_MIN_VERSION = str(_env_raw("EXIFID_IDENTIFY_MIN_VERSION", default="") or "").strip()

# Seconds before an identify run is killed
IDENTIFY_TIMEOUT = _env_int(20, "EXIFID_IDENTIFY_TIMEOUT", min_value=1, max_value=120)

# Parallel identify processes for batch reads
IDENTIFY_MAX_WORKERS = _env_int(4, "EXIFID_IDENTIFY_MAX_WORKERS", min_value=1, max_value=32)

EXIFID_DEBUG = env_bool("EXIFID_DEBUG", False)
