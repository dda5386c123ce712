"""
Parser for `identify -format` EXIF output.

Turns `name=value` lines such as::

    exif:Make=Canon
    exif:FocalLength=129/18
    exif:GPSLatitude=10/1, 30/1, 0/1
    date:modify=2016-03-05T10:20:30+00:00
    width=1600

into a `NormalizedExif` record. Parsing is best effort: malformed lines,
unknown tags and unparsable values are skipped and never raise.

References:
    Exif tags:    http://www.exiv2.org/tags.html
    Orientation:  http://sylvana.net/jpegcrop/exif_orientation.html
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple, Union

from ...shared import get_logger
from .models import NormalizedExif

logger = get_logger(__name__)

Triplet = Tuple[float, float, float]
AttributeValue = Union[str, int, float, Triplet, datetime]

MIN_YEAR = 1970
MAX_YEAR = 2099

# Namespace stripped before dispatch; `date:` keeps its prefix
_EXIF_NAMESPACE = "exif:"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_EXIF_DATE_RE = re.compile(
    r"^(\d{4}):(\d{1,2}):(\d{1,2})(?:[ T](\d{1,2}):(\d{1,2})(?::(\d{1,2}))?)?"
)
# Fractional seconds and `+HHMM` offsets, rewritten into the forms
# `datetime.fromisoformat` accepts on every supported Python
_ISO_FRACTION_RE = re.compile(r"(\d{2}:\d{2}:\d{2})[.,](\d+)")
_ISO_COMPACT_OFFSET_RE = re.compile(r"([T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)([+-]\d{2})(\d{2})$")

_ORIENTATIONS: Dict[str, int] = {
    "topleft": 1,
    "topright": 2,
    "bottomright": 3,
    "bottomleft": 4,
    "lefttop": 5,
    "righttop": 6,
    "rightbottom": 7,
    "leftbottom": 8,
}


def parse_string(value: Optional[str]) -> str:
    return value if value is not None else ""


def parse_char(value: Optional[str]) -> str:
    """First character of the value (hemisphere references: N/S, E/W)."""
    return value[:1] if value else ""


def parse_int(value: Optional[str]) -> Optional[int]:
    """Leading base-10 integer, `None` if the value does not start with one."""
    if value is None:
        return None
    match = _LEADING_INT_RE.match(value)
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # Exceeds the interpreter's int string conversion limit
        return None


def _parse_float(value: str) -> Optional[float]:
    match = _LEADING_FLOAT_RE.match(value)
    if not match:
        return None
    result = float(match.group(1))
    return result if math.isfinite(result) else None


def _round3(value: float) -> float:
    # Half-up rounding to 3 decimals
    return math.floor(1000 * value + 0.5) / 1000


def parse_rational(value: Optional[str]) -> Optional[float]:
    """
    Parse an EXIF rational.

    `"7/2"` -> 3.5, `"1/3"` -> 0.333, `"10"` -> 10.0, `"5mm"` -> 5.0.
    Fractions are rounded to 3 decimals; plain numbers are returned as-is.
    """
    if value is None:
        return None
    value = value.replace("mm", "", 1).strip()
    index = value.find("/")
    if index == -1:
        return _parse_float(value)

    numerator = _parse_float(value[:index].strip())
    denominator = _parse_float(value[index + 1:].strip())
    if numerator is None or denominator is None or denominator == 0:
        return None
    try:
        ratio = numerator / denominator
    except OverflowError:
        return None
    if not math.isfinite(ratio) or not math.isfinite(1000 * ratio):
        return None
    return _round3(ratio)


def parse_rational_triplet(value: Optional[str]) -> Optional[Triplet]:
    """Parse `deg, min, sec` rationals; extra components are ignored."""
    if not value:
        return None
    parts = value.split(",")
    if len(parts) < 3:
        return None
    first, second, third = (parse_rational(part) for part in parts[:3])
    if first is None or second is None or third is None:
        return None
    return first, second, third


def parse_orientation(value: Optional[str]) -> Optional[int]:
    """Map `TopLeft` / `top-left` / `1` style orientations to the 1-8 code."""
    if value is None:
        return None
    key = value.strip().lower().replace("-", "", 1)
    if not key or key == "undefined":
        return None
    code = _ORIENTATIONS.get(key)
    if code is None:
        code = parse_int(key)
    if code is None or not 1 <= code <= 8:
        return None
    return code


def _in_range(value: datetime) -> Optional[datetime]:
    if value.year < MIN_YEAR or value.year > MAX_YEAR:
        return None
    return value


def parse_exif_date(value: Optional[str]) -> Optional[datetime]:
    """Parse `YYYY:MM:DD HH:mm:ss` as UTC. Placeholder dates like `0000:00:00` give None."""
    if not value:
        return None
    match = _EXIF_DATE_RE.match(value.strip())
    if not match:
        return None
    year, month, day, hour, minute, second = (int(g) if g else 0 for g in match.groups())
    try:
        parsed = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    except ValueError:
        return None
    return _in_range(parsed)


def parse_iso_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (as written by `%[date:*]`), normalized to UTC."""
    if not value:
        return None
    raw = value.strip()
    if raw[-1:] in ("Z", "z"):
        raw = raw[:-1] + "+00:00"
    raw = _ISO_COMPACT_OFFSET_RE.sub(r"\1\2:\3", raw)
    raw = _ISO_FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", raw)
    try:
        parsed = datetime.fromisoformat(raw)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        else:
            parsed = parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None
    return _in_range(parsed)


# Tag name (lower-cased, `exif:` stripped) -> value parser
TAG_PARSERS: Dict[str, Callable[[str], Any]] = {
    "make": parse_string,
    "model": parse_string,
    "width": parse_int,
    "height": parse_int,
    "xresolution": parse_rational,
    "yresolution": parse_rational,
    "orientation": parse_orientation,
    "datetimeoriginal": parse_exif_date,
    "datetimedigitized": parse_exif_date,
    "date:modify": parse_iso_date,
    "date:create": parse_iso_date,
    "focallength": parse_rational,
    "exposuretime": parse_rational,
    "fnumber": parse_rational,
    "customrendered": parse_int,
    "gpsaltitude": parse_rational,
    "gpsaltituderef": parse_int,  # 0=above sea level, 1=below sea level
    "gpslatitude": parse_rational_triplet,
    "gpslatituderef": parse_char,  # N=north, S=south
    "gpslongitude": parse_rational_triplet,
    "gpslongituderef": parse_char,  # E=east, W=west
}


def _tag_key(name: str) -> str:
    if name.startswith(_EXIF_NAMESPACE):
        return name[len(_EXIF_NAMESPACE):]
    return name


def _as_text(raw_text: Union[str, bytes, None]) -> str:
    if raw_text is None:
        return ""
    if isinstance(raw_text, (bytes, bytearray)):
        return bytes(raw_text).decode("utf-8", errors="replace")
    return str(raw_text)


def parse_attributes(raw_text: Union[str, bytes, None]) -> Dict[str, AttributeValue]:
    """
    Build the attribute map from raw tool output.

    Lines without `=` and unknown tags are skipped. A repeated tag keeps
    the last parsed value, including `None` when the last value is bad.
    """
    attributes: Dict[str, Any] = {}
    for line in _as_text(raw_text).split("\n"):
        line = line.strip()
        index = line.find("=")
        if index == -1:
            continue
        name = line[:index].strip().lower()
        value = line[index + 1:].strip()
        key = _tag_key(name)
        parser = TAG_PARSERS.get(key)
        if parser is None:
            continue
        logger.debug("Parsing attribute %s=%r", name, value)
        try:
            attributes[key] = parser(value)
        except (ValueError, ArithmeticError) as exc:
            logger.debug("Ignoring unparsable attribute %s: %s", name, exc)
            attributes[key] = None
    return {k: v for k, v in attributes.items() if v is not None}


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _derive_hdr(attributes: Dict[str, Any]) -> Optional[bool]:
    # Apple writes CustomRendered=3 for HDR captures and 4 for the normal shot
    make = attributes.get("make")
    if not make or make.lower() != "apple":
        return None
    custom_rendered = attributes.get("customrendered")
    if custom_rendered == 3:
        return True
    if custom_rendered == 4:
        return False
    return None


def _to_degrees(triplet: Triplet) -> float:
    degrees, minutes, seconds = triplet
    return degrees + minutes / 60 + seconds / 3600


def _derive_coordinates(attributes: Dict[str, Any]) -> Tuple[Optional[float], Optional[float]]:
    latitude = attributes.get("gpslatitude")
    latitude_ref = attributes.get("gpslatituderef")
    longitude = attributes.get("gpslongitude")
    longitude_ref = attributes.get("gpslongituderef")
    if not (latitude and latitude_ref and longitude and longitude_ref):
        return None, None

    lat = _to_degrees(latitude)
    lon = _to_degrees(longitude)
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None, None
    if latitude_ref == "S":
        lat = -lat
    if longitude_ref == "W":
        lon = -lon
    return lat, lon


def _derive_altitude(attributes: Dict[str, Any]) -> Optional[float]:
    altitude = attributes.get("gpsaltitude")
    altitude_ref = attributes.get("gpsaltituderef")
    if altitude is None or altitude_ref is None:
        return None
    return -altitude if altitude_ref == 1 else altitude


def _derive_resolution(attributes: Dict[str, Any]) -> Optional[str]:
    x_res = attributes.get("xresolution")
    y_res = attributes.get("yresolution")
    if x_res is None or y_res is None:
        return None
    return f"{_format_number(x_res)}x{_format_number(y_res)}"


def _derive_date_time(attributes: Dict[str, Any]) -> Optional[datetime]:
    for key in ("datetimedigitized", "datetimeoriginal", "date:modify", "date:create"):
        value = attributes.get(key)
        if value is not None:
            return value
    return None


def extract(raw_text: Union[str, bytes, None]) -> NormalizedExif:
    """
    Parse raw `identify` output into a `NormalizedExif`.

    Never raises; fields that cannot be derived are left as `None`.
    """
    attributes = parse_attributes(raw_text)
    latitude, longitude = _derive_coordinates(attributes)

    return NormalizedExif(
        make=attributes.get("make"),
        model=attributes.get("model"),
        width=attributes.get("width"),
        height=attributes.get("height"),
        resolution=_derive_resolution(attributes),
        orientation=attributes.get("orientation"),
        date_time=_derive_date_time(attributes),
        focal_length=attributes.get("focallength"),
        exposure_time=attributes.get("exposuretime"),
        f_number=attributes.get("fnumber"),
        hdr=_derive_hdr(attributes),
        latitude=latitude,
        longitude=longitude,
        altitude=_derive_altitude(attributes),
    )
