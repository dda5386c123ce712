"""
Normalized EXIF record.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attribute name -> serialized key
_WIRE_NAMES: Dict[str, str] = {
    "make": "make",
    "model": "model",
    "width": "width",
    "height": "height",
    "resolution": "resolution",
    "orientation": "orientation",
    "date_time": "dateTime",
    "focal_length": "focalLength",
    "exposure_time": "exposureTime",
    "f_number": "fNumber",
    "hdr": "hdr",
    "latitude": "latitude",
    "longitude": "longitude",
    "altitude": "altitude",
}


def _format_datetime(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class NormalizedExif:
    """
    Best-effort EXIF record. Every field is independently optional;
    `None` means the value could not be derived from the tool output.
    """
    make: Optional[str] = None
    model: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    resolution: Optional[str] = None
    orientation: Optional[int] = None
    date_time: Optional[datetime] = None
    focal_length: Optional[float] = None
    exposure_time: Optional[float] = None
    f_number: Optional[float] = None
    hdr: Optional[bool] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self, include_absent: bool = False) -> Dict[str, Any]:
        """
        Serialize using camelCase keys (`dateTime`, `focalLength`, ...).

        Dates are rendered as ISO-8601 UTC strings with a `Z` suffix.
        Absent fields are omitted unless `include_absent` is set.
        """
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None and not include_absent:
                continue
            if isinstance(value, datetime):
                value = _format_datetime(value)
            out[_WIRE_NAMES[f.name]] = value
        return out
