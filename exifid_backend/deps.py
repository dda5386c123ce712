"""
Dependency injection - builds services.
Simple, debug-friendly DI without framework magic.
"""
from typing import Optional

from .adapters.tools import Identify
from .config import IDENTIFY_BIN, IDENTIFY_MAX_WORKERS, IDENTIFY_MIN_VERSION, IDENTIFY_TIMEOUT
from .features.exif.service import ExifService
from .shared import get_logger

logger = get_logger(__name__)


def build_identify(
    identify_bin: Optional[str] = None,
    timeout: Optional[float] = None,
    max_workers: Optional[int] = None,
    min_version: Optional[str] = None,
) -> Identify:
    identify = Identify(
        bin_name=identify_bin or IDENTIFY_BIN or "identify",
        timeout=timeout if timeout is not None else IDENTIFY_TIMEOUT,
        max_workers=max_workers if max_workers is not None else IDENTIFY_MAX_WORKERS,
        min_version=min_version if min_version is not None else IDENTIFY_MIN_VERSION,
    )
    if not identify.is_available():
        logger.warning("identify is not available (%s); EXIF extraction will fail", identify.bin)
    return identify


def build_exif_service(
    identify_bin: Optional[str] = None,
    timeout: Optional[float] = None,
    max_workers: Optional[int] = None,
    min_version: Optional[str] = None,
) -> ExifService:
    """
    Build an ExifService.

    Explicit arguments win over the environment-driven defaults in `config`.
    """
    return ExifService(build_identify(identify_bin, timeout, max_workers, min_version))
