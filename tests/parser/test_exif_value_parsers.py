from datetime import datetime, timezone

import pytest

from exifid_backend.features.exif import parser as p


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("7/2", 3.5),
        ("1/3", 0.333),
        ("10", 10.0),
        ("5mm", 5.0),
        ("5.8 mm", 5.8),
        ("129/18", 7.167),
        ("1/60", 0.017),
        ("1/2000", 0.001),
        (" 2/1 ", 2.0),
        ("72 PixelsPerInch", 72.0),
    ],
)
def test_parse_rational(raw, expected):
    assert p.parse_rational(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "0/0", "1/0", "x/2", "2/y", "1e999", "1e308/1e-308"])
def test_parse_rational_invalid_is_absent(raw):
    assert p.parse_rational(raw) is None


def test_parse_rational_only_rounds_fractions():
    assert p.parse_rational("0.33333") == 0.33333


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("top-left", 1),
        ("TopLeft", 1),
        ("top-right", 2),
        ("BottomRight", 3),
        ("bottom-left", 4),
        ("left-top", 5),
        ("RightTop", 6),
        ("right-bottom", 7),
        ("LeftBottom", 8),
        ("3", 3),
        ("6", 6),
    ],
)
def test_parse_orientation(raw, expected):
    assert p.parse_orientation(raw) == expected


@pytest.mark.parametrize("raw", ["", "undefined", "Undefined", "sideways", "0", "9"])
def test_parse_orientation_unknown_is_absent(raw):
    assert p.parse_orientation(raw) is None


def test_parse_int_uses_leading_digits():
    assert p.parse_int("1600") == 1600
    assert p.parse_int(" 12px") == 12
    assert p.parse_int("-3") == -3
    assert p.parse_int("abc") is None
    assert p.parse_int("") is None
    assert p.parse_int("9" * 5000) is None


def test_parse_string_and_char():
    assert p.parse_string("Canon") == "Canon"
    assert p.parse_string("") == ""
    assert p.parse_string(None) == ""
    assert p.parse_char("North") == "N"
    assert p.parse_char("S") == "S"
    assert p.parse_char("") == ""
    assert p.parse_char(None) == ""


def test_parse_exif_date_range_bounds():
    assert p.parse_exif_date("1970:01:01 00:00:00") == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert p.parse_exif_date("2099:12:31 23:59:59") == datetime(2099, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    assert p.parse_exif_date("1969:12:31 23:59:59") is None
    assert p.parse_exif_date("2100:01:01 00:00:00") is None


@pytest.mark.parametrize("raw", ["", "0000:00:00 00:00:00", "2006:13:01 10:00:00", "2006-11-12", "    :  :     :  :  "])
def test_parse_exif_date_placeholders_are_absent(raw):
    assert p.parse_exif_date(raw) is None


def test_parse_exif_date_is_utc():
    parsed = p.parse_exif_date("2006:11:12 17:08:24")
    assert parsed == datetime(2006, 11, 12, 17, 8, 24, tzinfo=timezone.utc)
    assert parsed.utcoffset().total_seconds() == 0


def test_parse_iso_date_normalizes_to_utc():
    expected = datetime(2016, 3, 5, 10, 20, 30, tzinfo=timezone.utc)
    assert p.parse_iso_date("2016-03-05T10:20:30+00:00") == expected
    assert p.parse_iso_date("2016-03-05T12:20:30+02:00") == expected
    assert p.parse_iso_date("2016-03-05T10:20:30Z") == expected
    assert p.parse_iso_date("2016-03-05T10:20:30") == expected


def test_parse_iso_date_accepts_short_fractions_and_compact_offsets():
    assert p.parse_iso_date("2016-03-05T10:20:30.5Z") == datetime(2016, 3, 5, 10, 20, 30, 500000, tzinfo=timezone.utc)
    assert p.parse_iso_date("2016-03-05T12:20:30.12+0200") == datetime(
        2016, 3, 5, 10, 20, 30, 120000, tzinfo=timezone.utc
    )
    assert p.parse_iso_date("2016-03-05 10:20:30.1234567") == datetime(
        2016, 3, 5, 10, 20, 30, 123456, tzinfo=timezone.utc
    )


@pytest.mark.parametrize("raw", ["", "garbage", "1969-12-31T23:00:00+00:00", "2100-01-01T00:00:00+00:00"])
def test_parse_iso_date_invalid_or_out_of_range(raw):
    assert p.parse_iso_date(raw) is None


def test_parse_rational_triplet():
    assert p.parse_rational_triplet("10/1, 30/1, 0/1") == (10.0, 30.0, 0.0)
    assert p.parse_rational_triplet("1,2,3,4") == (1.0, 2.0, 3.0)
    assert p.parse_rational_triplet("10/1, 30/1") is None
    assert p.parse_rational_triplet("a, b, c") is None
    assert p.parse_rational_triplet("") is None


def test_tag_table_covers_every_recognized_tag():
    assert set(p.TAG_PARSERS) == {
        "make", "model", "width", "height", "xresolution", "yresolution",
        "orientation", "datetimeoriginal", "datetimedigitized", "date:modify",
        "date:create", "focallength", "exposuretime", "fnumber", "customrendered",
        "gpsaltitude", "gpsaltituderef", "gpslatitude", "gpslatituderef",
        "gpslongitude", "gpslongituderef",
    }
