"""
Detection helpers for the ImageMagick `identify` binary.
Cached detection to avoid repeated subprocess calls.
"""
import re
import shutil
import subprocess
from typing import Any, Dict, Optional, Tuple

from exifid_backend.config import IDENTIFY_BIN, IDENTIFY_MIN_VERSION
from exifid_backend.shared import get_logger

logger = get_logger(__name__)

# Keyed by binary name or path
_TOOL_CACHE: Dict[str, bool] = {}
_TOOL_VERSIONS: Dict[str, Optional[str]] = {}

_IM_VERSION_RE = re.compile(r"ImageMagick\s+([0-9][0-9.\-]*)")


def parse_tool_version(value: Optional[str]) -> Tuple[int, ...]:
    if not value:
        return ()
    return tuple(int(part) for part in re.findall(r"\d+", value))


def version_satisfies_minimum(actual: Optional[str], minimum: str) -> bool:
    if not minimum:
        return True
    minimum_parts = parse_tool_version(minimum)
    if not minimum_parts:
        return True
    actual_parts = parse_tool_version(actual or "")
    if not actual_parts:
        return False
    length = max(len(actual_parts), len(minimum_parts))
    padded_actual = list(actual_parts) + [0] * (length - len(actual_parts))
    padded_minimum = list(minimum_parts) + [0] * (length - len(minimum_parts))
    return tuple(padded_actual) >= tuple(padded_minimum)


def extract_imagemagick_version(output: str) -> Optional[str]:
    """Pull `7.1.1-15` out of `Version: ImageMagick 7.1.1-15 Q16-HDRI ...`."""
    match = _IM_VERSION_RE.search(output or "")
    return match.group(1) if match else None


def _run_command(cmd: list[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=2,
        check=False,
    )


def _probe(identify_bin: str) -> bool:
    if identify_bin in _TOOL_CACHE:
        return _TOOL_CACHE[identify_bin]

    try:
        if shutil.which(identify_bin) is None:
            logger.debug("identify binary not found in PATH: %s", identify_bin)
        result = _run_command([identify_bin, "-version"])
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.warning("identify detection failed for %s: %s", identify_bin, exc)
        _TOOL_CACHE[identify_bin] = False
        return False

    available = result.returncode == 0
    _TOOL_CACHE[identify_bin] = available
    if not available:
        logger.warning("identify not found or failed to start: %s", (result.stderr or "").strip())
        return False

    version = extract_imagemagick_version(result.stdout)
    _TOOL_VERSIONS[identify_bin] = version
    logger.info("identify detected (%s): ImageMagick %s", identify_bin, version or "<unknown>")
    return True


def has_identify(bin_name: Optional[str] = None, min_version: Optional[str] = None) -> bool:
    """
    Check if identify is available (and recent enough when a minimum is set).

    The `-version` probe is cached per binary; `min_version` defaults to
    IDENTIFY_MIN_VERSION.
    """
    identify_bin = bin_name or IDENTIFY_BIN or "identify"
    if not _probe(identify_bin):
        return False

    minimum = IDENTIFY_MIN_VERSION if min_version is None else min_version
    version = _TOOL_VERSIONS.get(identify_bin)
    if minimum and not version_satisfies_minimum(version, minimum):
        logger.warning(
            "identify version %s does not meet minimum required %s",
            version or "<unknown>",
            minimum,
        )
        return False
    return True


def get_tool_status(bin_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Returns: {
        "identify": bool,
        "versions": {"identify": str | null}
    }
    """
    identify_bin = bin_name or IDENTIFY_BIN or "identify"
    return {
        "identify": has_identify(identify_bin),
        "versions": {"identify": _TOOL_VERSIONS.get(identify_bin)},
    }


def reset_tool_cache():
    """Reset tool detection cache (for testing or manual refresh)."""
    _TOOL_CACHE.clear()
    _TOOL_VERSIONS.clear()
