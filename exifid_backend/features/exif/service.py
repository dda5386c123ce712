"""
EXIF extraction service: identify output -> NormalizedExif.
"""
import logging
from typing import Dict, List, Optional

from ...adapters.tools import Identify
from ...shared import Result, get_logger, log_structured, timer
from .models import NormalizedExif
from .parser import extract

logger = get_logger(__name__)


class ExifService:
    """
    Composes the identify adapter with the EXIF parser.

    Tool errors are returned unchanged; parsing itself cannot fail.
    """

    def __init__(self, identify: Identify):
        self.identify = identify

    def _to_exif(self, raw: Result[str], path: str) -> Result[NormalizedExif]:
        if not raw.ok:
            logger.debug("EXIF extraction failed for %s: [%s] %s", path, raw.code, raw.error)
            return Result.Err(raw.code, raw.error or "identify failed", **(raw.meta or {}))
        exif = extract(raw.data or "")
        logger.debug("Exif information for %s: %s", path, exif.to_dict())
        return Result.Ok(exif, **(raw.meta or {}))

    def extract_exif(self, path: str) -> Result[NormalizedExif]:
        """
        Extract normalized EXIF data from an image file.

        Args:
            path: Image file path

        Returns:
            Result with NormalizedExif, or the identify error
        """
        logger.debug("extract_exif: %s", path)
        with timer(f"EXIF extraction of {path}", logger):
            raw = self.identify.read(path)
        return self._to_exif(raw, path)

    async def aextract_exif(self, path: str) -> Result[NormalizedExif]:
        """Async variant of extract_exif()."""
        logger.debug("aextract_exif: %s", path)
        raw = await self.identify.aread(path)
        return self._to_exif(raw, path)

    def _collect_batch(self, raw_results: Dict[str, Result[str]]) -> Dict[str, Result[NormalizedExif]]:
        results = {path: self._to_exif(raw, path) for path, raw in raw_results.items()}
        failed = [path for path, res in results.items() if not res.ok]
        log_structured(
            logger,
            logging.WARNING if failed else logging.DEBUG,
            "EXIF batch extraction finished",
            total=len(results),
            failed=len(failed),
        )
        return results

    def extract_exif_batch(self, paths: List[str]) -> Dict[str, Result[NormalizedExif]]:
        return self._collect_batch(self.identify.read_batch(paths))

    async def aextract_exif_batch(self, paths: List[str]) -> Dict[str, Result[NormalizedExif]]:
        return self._collect_batch(await self.identify.aread_batch(paths))


_default_service: Optional[ExifService] = None


def _get_default_service() -> ExifService:
    global _default_service
    if _default_service is None:
        from ...deps import build_exif_service
        _default_service = build_exif_service()
    return _default_service


def extract_exif(path: str, service: Optional[ExifService] = None) -> Result[NormalizedExif]:
    """
    Extract EXIF data from `path` with the given service, or one built
    from environment configuration.
    """
    return (service or _get_default_service()).extract_exif(path)
