from __future__ import annotations

from fractions import Fraction
from pathlib import Path

import cv2
import numpy as np

from golftracer.ingest.video_to_frames import (
    VideoAsset,
    compute_timestamps,
    copy_media,
    load_image,
    probe_video,
)
from golftracer.types import ZERO, Timestamp


def test_two_seconds_at_thirty_fps_yields_sixty_timestamps() -> None:
    timestamps = compute_timestamps(30.0, 2.0)

    assert len(timestamps) == 60
    assert timestamps[0] == ZERO
    assert [t.fraction for t in timestamps] == [Fraction(i, 30) for i in range(60)]
    assert timestamps[-1] == Timestamp(59, 30)


def test_timestamps_strictly_increasing_and_evenly_spaced() -> None:
    timestamps = compute_timestamps(24.0, 3.3)

    assert len(timestamps) == 79
    gaps = {b.fraction - a.fraction for a, b in zip(timestamps, timestamps[1:])}
    assert gaps == {Fraction(1, 24)}


def test_ntsc_rate_keeps_exact_spacing() -> None:
    fps = 30000 / 1001
    timestamps = compute_timestamps(fps, 300 / fps)

    assert len(timestamps) == 300
    assert timestamps[1].fraction == Fraction(1001, 30000)
    assert timestamps[299].fraction == Fraction(299 * 1001, 30000)


def test_unavailable_metadata_yields_no_timestamps() -> None:
    assert compute_timestamps(None, 2.0) == []
    assert compute_timestamps(30.0, None) == []
    assert compute_timestamps(0.0, 2.0) == []
    assert compute_timestamps(30.0, 0.0) == []
    assert compute_timestamps(float("nan"), 2.0) == []


def test_timestamp_equality_is_rational() -> None:
    assert Timestamp(1, 30) == Timestamp(2, 60)
    assert hash(Timestamp(1, 30)) == hash(Timestamp(2, 60))
    assert Timestamp(1, 30) < Timestamp(1, 29)
    assert Timestamp(3, 2).seconds == 1.5


def test_metadata_and_iter_frames_on_real_video(sample_video: Path) -> None:
    meta = probe_video(sample_video)
    assert meta is not None
    assert round(meta.frame_rate) == 10
    assert meta.frame_count == 10

    asset = VideoAsset(sample_video)
    frames = list(asset.iter_frames())

    assert len(frames) == 10
    assert [f.timestamp for f in frames] == [Timestamp(i, 10) for i in range(10)]
    assert frames[0].image.shape == (48, 64, 3)


def test_iter_frames_is_not_restartable(sample_video: Path) -> None:
    frames = VideoAsset(sample_video).iter_frames()
    first = list(frames)
    assert len(first) == 10
    assert list(frames) == []


def test_extract_frames_batch(sample_video: Path) -> None:
    frames = VideoAsset(sample_video).extract_frames()
    assert len(frames) == 10


def test_corrupt_video_yields_no_frames(tmp_path: Path) -> None:
    path = tmp_path / "broken.mp4"
    path.write_bytes(b"not a video at all")

    assert probe_video(path) is None
    asset = VideoAsset(path)
    assert asset.timestamps() == []
    assert list(asset.iter_frames()) == []


def test_missing_video_yields_no_frames(tmp_path: Path) -> None:
    assert probe_video(tmp_path / "nope.mp4") is None
    assert list(VideoAsset(tmp_path / "nope.mp4").iter_frames()) == []


def test_load_image_is_single_frame_at_zero(sample_image: Path, tmp_path: Path) -> None:
    frame = load_image(sample_image)
    assert frame is not None
    assert frame.timestamp == ZERO
    assert frame.image.shape == (48, 64, 3)

    assert load_image(tmp_path / "missing.png") is None


def test_copy_media_replaces_previous_copy(tmp_path: Path) -> None:
    first = tmp_path / "a.mp4"
    second = tmp_path / "b.mp4"
    first.write_bytes(b"first")
    second.write_bytes(b"second")
    media_dir = tmp_path / "media"

    copied = copy_media(first, media_dir)
    assert copied.name == "movie.mp4"
    assert copied.read_bytes() == b"first"

    copied = copy_media(second, media_dir)
    assert copied.read_bytes() == b"second"
    assert sorted(p.name for p in media_dir.iterdir()) == ["movie.mp4"]


def test_copy_media_keeps_one_copy_across_extensions(tmp_path: Path) -> None:
    mp4 = tmp_path / "b.mp4"
    mov = tmp_path / "a.mov"
    mp4.write_bytes(b"mp4")
    mov.write_bytes(b"mov")
    media_dir = tmp_path / "media"

    copy_media(mp4, media_dir)
    copied = copy_media(mov, media_dir)

    assert copied.name == "movie.mov"
    assert copied.read_bytes() == b"mov"
    assert sorted(p.name for p in media_dir.iterdir()) == ["movie.mov"]


def test_copy_media_from_an_older_copy(tmp_path: Path) -> None:
    media_dir = tmp_path / "media"
    media_dir.mkdir()
    old = media_dir / "movie.mov"
    old.write_bytes(b"old")

    copied = copy_media(old, media_dir)

    assert copied == old
    assert old.read_bytes() == b"old"


class FailOnceCapture:
    """VideoCapture stand-in: 8 frames at 10 fps, the read at index 3 fails once."""

    seeks: list[int] = []

    def __init__(self, path: str) -> None:
        self._position = 0
        self._failed = False

    def isOpened(self) -> bool:  # noqa: N802
        return True

    def get(self, prop: int) -> float:
        if prop == cv2.CAP_PROP_FPS:
            return 10.0
        if prop == cv2.CAP_PROP_FRAME_COUNT:
            return 8.0
        return 0.0

    def set(self, prop: int, value: float) -> bool:
        assert prop == cv2.CAP_PROP_POS_FRAMES
        type(self).seeks.append(int(value))
        self._position = int(value)
        return True

    def read(self):
        index = self._position
        self._position += 1
        if index == 3 and not self._failed:
            self._failed = True
            return False, None
        return True, np.full((4, 4, 3), index, dtype=np.uint8)

    def release(self) -> None:
        pass


def test_single_decode_failure_is_dropped_and_decoding_resumes(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    path = tmp_path / "flaky.mp4"
    path.write_bytes(b"flaky")
    FailOnceCapture.seeks = []
    monkeypatch.setattr(cv2, "VideoCapture", FailOnceCapture)

    frames = list(VideoAsset(path).iter_frames())

    assert [f.timestamp for f in frames] == [Timestamp(i, 10) for i in (0, 1, 2, 4, 5, 6, 7)]
    assert [int(f.image[0, 0, 0]) for f in frames] == [0, 1, 2, 4, 5, 6, 7]
    assert FailOnceCapture.seeks == [4]
