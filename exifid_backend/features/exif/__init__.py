"""EXIF extraction feature."""
from .models import NormalizedExif
from .parser import extract, parse_attributes
from .service import ExifService, extract_exif

__all__ = ["NormalizedExif", "ExifService", "extract", "extract_exif", "parse_attributes"]
