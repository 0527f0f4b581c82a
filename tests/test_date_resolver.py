"""Tests for the metadata date resolver's fallback chain."""
import os
from datetime import datetime
from pathlib import Path

from shoebox.core.config import ShoeboxSettings
from shoebox.core.models import DateSource, MediaKind
from shoebox.core.protocols import ContainerMetadata, ImageMetadata
from shoebox.engines.content_index import NullContentIndex
from shoebox.services.date_resolver import MetadataDateResolver

from fixtures import FakeContainerReader, FakeContentIndex, FakeImageReader, make_heic, make_jpeg, touch


MTIME = datetime(2011, 11, 11, 11, 11, 11)


def set_mtime(path: Path, value: datetime = MTIME) -> Path:
    stamp = value.timestamp()
    os.utime(path, (stamp, stamp))
    return path


def resolver(image=None, container=None, index=None, fragile=("cr2", "raf")):
    return MetadataDateResolver(
        image_reader=image or FakeImageReader(),
        container_reader=container or FakeContainerReader(),
        content_index=index or FakeContentIndex(),
        fragile_raw_extensions=fragile,
    )


class TestImageChain:
    """Direct EXIF parsing priority."""

    def test_capture_time_wins(self, tmp_path):
        path = touch(tmp_path / "a.jpg")
        image = FakeImageReader({"a.jpg": ImageMetadata(
            capture_time="2015:01:03 10:00:00",
            digitized_time="2016:01:01 00:00:00",
            generic_date="2017:01:01 00:00:00",
            gps_date_stamp="2018:01:01",
        )})

        extracted = resolver(image=image).resolve(path, MediaKind.IMAGE)

        assert extracted.timestamp == datetime(2015, 1, 3, 10)
        assert extracted.source is DateSource.PRIMARY_CAPTURE_TIME

    def test_digitized_when_capture_unparseable(self, tmp_path):
        path = touch(tmp_path / "a.jpg")
        image = FakeImageReader({"a.jpg": ImageMetadata(
            capture_time="0000:00:00 00:00:00",
            digitized_time="2016:02:02 02:02:02",
        )})
        extracted = resolver(image=image).resolve(path, MediaKind.IMAGE)
        assert extracted.source is DateSource.DIGITIZED_TIME
        assert extracted.timestamp == datetime(2016, 2, 2, 2, 2, 2)

    def test_generic_date(self, tmp_path):
        path = touch(tmp_path / "a.jpg")
        image = FakeImageReader({"a.jpg": ImageMetadata(generic_date="2017:03:03 03:03:03")})
        extracted = resolver(image=image).resolve(path, MediaKind.IMAGE)
        assert extracted.source is DateSource.CONTAINER_CREATE_TIME

    def test_gps_stamp_is_midnight(self, tmp_path):
        path = touch(tmp_path / "a.jpg")
        image = FakeImageReader({"a.jpg": ImageMetadata(gps_date_stamp="2018:04:04")})
        extracted = resolver(image=image).resolve(path, MediaKind.IMAGE)
        assert extracted.timestamp == datetime(2018, 4, 4, 0, 0)
        assert extracted.source is DateSource.CONTAINER_CREATE_TIME

    def test_non_fragile_never_queries_index(self, tmp_path):
        path = touch(tmp_path / "a.jpg")
        index = FakeContentIndex({"a.jpg": ["2015-01-03 10:00:00 +0000"]})
        resolver(index=index).resolve(path, MediaKind.IMAGE)
        assert index.calls == []

    def test_reader_exception_falls_back_to_mtime(self, tmp_path):
        path = set_mtime(touch(tmp_path / "a.jpg"))
        extracted = resolver(image=FakeImageReader(raises=True)).resolve(path, MediaKind.IMAGE)
        assert extracted.source is DateSource.FILE_MODIFIED_TIME
        assert extracted.timestamp == MTIME


class TestFragileRaw:
    """Fragile RAW files consult the content index first."""

    def test_index_first(self, tmp_path):
        path = touch(tmp_path / "a.CR2")
        image = FakeImageReader({"a.CR2": ImageMetadata(capture_time="2001:01:01 00:00:00")})
        index = FakeContentIndex({"a.CR2": ["(null)", "2015-01-03T10:00:00"]})

        extracted = resolver(image=image, index=index).resolve(path, MediaKind.IMAGE)

        assert extracted.timestamp == datetime(2015, 1, 3, 10)
        assert extracted.source is DateSource.PRIMARY_CAPTURE_TIME
        assert image.calls == []

    def test_falls_back_to_exif(self, tmp_path):
        path = touch(tmp_path / "a.raf")
        image = FakeImageReader({"a.raf": ImageMetadata(capture_time="2001:01:01 00:00:00")})
        index = FakeContentIndex({"a.raf": ["(null)", "(null)"]})

        extracted = resolver(image=image, index=index).resolve(path, MediaKind.IMAGE)

        assert extracted.timestamp == datetime(2001, 1, 1)
        assert index.calls == [path]
        assert image.calls == [path]

    def test_is_fragile(self):
        r = resolver(fragile=(".CR3",))
        assert r.is_fragile(Path("x.cr3"))
        assert not r.is_fragile(Path("x.jpg"))


class TestVideoChain:
    def test_creation_time(self, tmp_path):
        path = touch(tmp_path / "v.mov")
        container = FakeContainerReader({"v.mov": ContainerMetadata(
            creation_time=datetime(2019, 5, 5, 5, 5),
            common_creation_time=datetime(2000, 1, 1),
        )})
        extracted = resolver(container=container).resolve(path, MediaKind.VIDEO)
        assert extracted.timestamp == datetime(2019, 5, 5, 5, 5)
        assert extracted.source is DateSource.VIDEO_CREATION_TIME

    def test_common_creation_time(self, tmp_path):
        path = touch(tmp_path / "v.mp4")
        container = FakeContainerReader({"v.mp4": ContainerMetadata(common_creation_time="2019:06:06 06:06:06")})
        extracted = resolver(container=container).resolve(path, MediaKind.VIDEO)
        assert extracted.timestamp == datetime(2019, 6, 6, 6, 6, 6)

    def test_content_index_last(self, tmp_path):
        path = touch(tmp_path / "v.mp4")
        index = FakeContentIndex({"v.mp4": ["2019-07-07T07:07:07"]})
        extracted = resolver(index=index).resolve(path, MediaKind.VIDEO)
        assert extracted.timestamp == datetime(2019, 7, 7, 7, 7, 7)
        assert extracted.source is DateSource.VIDEO_CREATION_TIME

    def test_mtime_fallback(self, tmp_path):
        path = set_mtime(touch(tmp_path / "v.avi"))
        extracted = resolver().resolve(path, MediaKind.VIDEO)
        assert extracted.source is DateSource.FILE_MODIFIED_TIME


class TestResolve:
    def test_nonexistent_file(self, tmp_path):
        assert resolver().resolve(tmp_path / "missing.jpg", MediaKind.IMAGE) is None

    def test_real_jpeg(self, tmp_path):
        path = make_jpeg(tmp_path / "real.jpg", exif_datetime="2015:01:03 10:00:00")
        real = MetadataDateResolver(content_index=NullContentIndex())
        extracted = real.resolve(path, MediaKind.IMAGE)
        assert extracted.timestamp == datetime(2015, 1, 3, 10)
        assert extracted.source in (
            DateSource.PRIMARY_CAPTURE_TIME,
            DateSource.DIGITIZED_TIME,
            DateSource.CONTAINER_CREATE_TIME,
        )

    def test_real_heic(self, tmp_path):
        path = set_mtime(make_heic(tmp_path / "IMG_0001.heic", "2015:01:03 10:00:00"))
        real = MetadataDateResolver(content_index=NullContentIndex())
        extracted = real.resolve(path, MediaKind.IMAGE)
        assert extracted.timestamp == datetime(2015, 1, 3, 10)
        assert extracted.source is DateSource.PRIMARY_CAPTURE_TIME

    def test_from_settings(self):
        settings = ShoeboxSettings(fragile_raw_extensions={"nef"}, index_timeout=2)
        r = MetadataDateResolver.from_settings(settings)
        assert r.is_fragile(Path("a.NEF"))
        assert not r.is_fragile(Path("a.cr2"))
