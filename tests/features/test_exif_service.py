import pytest

from exifid_backend.features.exif import ExifService, NormalizedExif, extract_exif
from exifid_shared import ErrorCode, Result
from tests.conftest import FakeIdentify


def test_extract_exif_parses_tool_output(fake_identify):
    service = ExifService(fake_identify)
    res = service.extract_exif("/photos/00001.jpg")
    assert res.ok
    assert isinstance(res.data, NormalizedExif)
    assert res.data.model == "Canon PowerShot G5"
    assert res.data.resolution == "180x180"
    assert res.meta["quality"] == "full"
    assert fake_identify.calls == ["/photos/00001.jpg"]


def test_extract_exif_propagates_tool_error_unchanged():
    err = Result.Err(ErrorCode.TIMEOUT, "identify timeout after 20.0s", quality="degraded")
    service = ExifService(FakeIdentify(default=err))
    res = service.extract_exif("/photos/slow.jpg")
    assert not res.ok
    assert res.data is None
    assert res == err


def test_empty_tool_output_gives_empty_record():
    service = ExifService(FakeIdentify(default=Result.Ok("")))
    res = service.extract_exif("/photos/blank.png")
    assert res.ok
    assert res.data.is_empty()


def test_module_level_extract_exif_accepts_explicit_service(fake_identify):
    res = extract_exif("/photos/00001.jpg", service=ExifService(fake_identify))
    assert res.ok
    assert res.data.make == "Canon"


def test_extract_exif_batch_mixes_results():
    identify = FakeIdentify(
        results={
            "a.jpg": Result.Ok("exif:Make=Apple\nexif:CustomRendered=3\n"),
            "b.jpg": Result.Err(ErrorCode.NOT_FOUND, "File not found: b.jpg"),
        }
    )
    out = ExifService(identify).extract_exif_batch(["a.jpg", "b.jpg"])
    assert out["a.jpg"].ok and out["a.jpg"].data.hdr is True
    assert out["b.jpg"].code == ErrorCode.NOT_FOUND.value


@pytest.mark.asyncio
async def test_aextract_exif(fake_identify):
    res = await ExifService(fake_identify).aextract_exif("x.jpg")
    assert res.ok
    assert res.data.f_number == 2.0


@pytest.mark.asyncio
async def test_aextract_exif_batch(fake_identify):
    out = await ExifService(fake_identify).aextract_exif_batch(["x.jpg", "y.jpg"])
    assert sorted(out) == ["x.jpg", "y.jpg"]
    assert all(r.ok for r in out.values())
