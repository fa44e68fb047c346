"""Pytest configuration and shared fixtures"""

from pathlib import Path

import pytest

from subupload.services.uploader import SubtitleUploader

SUBTITLE_TEXT = b"1\r\n00:00:01,000 --> 00:00:02,000\r\nHello there\r\n\r\n"
VIDEO_SIZE = 200_000

DEFAULT_RESPONSES = {
    "LogIn": {"status": "200 OK", "token": "tok3n-abcdef-123456", "seconds": 0.01},
    "LogOut": {"status": "200 OK", "seconds": 0.01},
    "TryUploadSubtitles": {
        "status": "200 OK",
        "alreadyindb": 0,
        "data": [{"IDMovieImdb": "1234567"}],
        "seconds": 0.02,
    },
    "UploadSubtitles": {
        "status": "200 OK",
        "data": "https://www.opensubtitles.org/subtitles/9999999",
        "subtitles": True,
        "seconds": 0.1,
    },
}


class FakeRPC:
    """Records every call and answers from a method -> response table."""

    def __init__(self, responses=None):
        self.responses = dict(DEFAULT_RESPONSES)
        self.responses.update(responses or {})
        self.calls = []
        self.closed = 0

    def call(self, method, args):
        self.calls.append((method, list(args)))
        value = self.responses[method]
        if isinstance(value, Exception):
            raise value
        return value

    def close(self):
        self.closed += 1

    def count(self, method):
        return sum(1 for name, _ in self.calls if name == method)

    def last_args(self, method):
        return [args for name, args in self.calls if name == method][-1]


def write_video(path: Path, size: int = VIDEO_SIZE) -> Path:
    pattern = bytes(range(256))
    data = (pattern * (size // len(pattern) + 1))[:size]
    path.write_bytes(data)
    return path


@pytest.fixture
def subtitle_file(tmp_path: Path) -> Path:
    path = tmp_path / "Movie.2020.1080p.srt"
    path.write_bytes(SUBTITLE_TEXT)
    return path


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    return write_video(tmp_path / "Movie.2020.1080p.mkv")


@pytest.fixture
def rpc() -> FakeRPC:
    return FakeRPC()


@pytest.fixture
def uploader(rpc: FakeRPC) -> SubtitleUploader:
    up = SubtitleUploader(rpc)
    up.login("user", "5f4dcc3b5aa765d61d8327deb882cf99", "en", "TestAgent v1")
    return up
