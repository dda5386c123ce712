"""
exifid - EXIF extraction through ImageMagick `identify`.
"""
from .deps import build_exif_service
from .features.exif import ExifService, NormalizedExif, extract, extract_exif

__version__ = "1.0.0"

__all__ = ["ExifService", "NormalizedExif", "build_exif_service", "extract", "extract_exif"]
