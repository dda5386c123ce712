import sys

import pytest

from .repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

CANON_G5_OUTPUT = """\
exif:make=Canon
exif:model=Canon PowerShot G5
width=1600
height=1200
xResolution=180
yResolution=180
exif:orientation=1
exif:datetimedigitized=2006:11:12 17:08:24
exif:focallength=129/18
exif:exposuretime=1/60
exif:fnumber=2/1
"""


class FakeIdentify:
    """Stands in for the identify adapter; returns canned Results per path."""

    def __init__(self, results=None, default=None):
        self.results = dict(results or {})
        self.default = default
        self.calls = []

    def _result(self, path):
        self.calls.append(path)
        return self.results.get(path, self.default)

    def is_available(self):
        return True

    def read(self, path):
        return self._result(path)

    async def aread(self, path):
        return self._result(path)

    def read_batch(self, paths):
        return {str(p): self._result(p) for p in paths}

    async def aread_batch(self, paths):
        return {str(p): self._result(p) for p in paths}


@pytest.fixture
def canon_output():
    return CANON_G5_OUTPUT


@pytest.fixture
def fake_identify():
    from exifid_shared import Result

    return FakeIdentify(default=Result.Ok(CANON_G5_OUTPUT, quality="full"))
