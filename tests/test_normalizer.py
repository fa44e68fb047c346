"""Tests for building negotiation and commit parameters"""

import base64
import hashlib
from pathlib import Path

import pytest

from conftest import SUBTITLE_TEXT, VIDEO_SIZE, write_video
from subupload.services.exceptions import ParseError, ValidationError
from subupload.services.fingerprint import fingerprint
from subupload.services.models import NegotiationFileItem, NegotiationParameters, UploadIntent
from subupload.services.normalizer import (
    build_commit_params,
    build_negotiation_params,
    strip_imdb_prefix,
)


def _video_group(item: NegotiationFileItem) -> int:
    return sum(1 for value in (item.moviehash, item.moviebytesize, item.moviefilename) if value)


class TestBuildNegotiationParams:
    """Test TryUploadSubtitles parameter building"""

    def test_subtitle_only_requires_imdb_id(self, subtitle_file: Path) -> None:
        """Test missing external id without a video fails"""
        intent = UploadIntent(subtitle_path=str(subtitle_file), language_id="eng")

        with pytest.raises(ValidationError, match="IMDb ID"):
            build_negotiation_params(intent)

    def test_subtitle_only_requires_language(self, subtitle_file: Path) -> None:
        """Test missing language without a video fails"""
        intent = UploadIntent(subtitle_path=str(subtitle_file), imdb_id="tt1234567")

        with pytest.raises(ValidationError, match="Language"):
            build_negotiation_params(intent)

    def test_subtitle_only_success(self, subtitle_file: Path) -> None:
        """Test subtitle-only intent with id and language"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file), imdb_id="tt1234567", language_id="eng"
        )

        params = build_negotiation_params(intent)

        assert params.idmovieimdb == "1234567"
        assert params.sublanguageid == "eng"
        assert params.file.subhash == hashlib.md5(SUBTITLE_TEXT).hexdigest()
        assert params.file.subfilename == subtitle_file.name
        assert _video_group(params.file) == 0

    def test_empty_subtitle_path(self) -> None:
        """Test empty subtitle path fails"""
        with pytest.raises(ValidationError, match="Subtitle file path"):
            build_negotiation_params(UploadIntent(subtitle_path=""))

    def test_unreadable_subtitle(self, tmp_path: Path) -> None:
        """Test subtitle read errors become ValidationError"""
        intent = UploadIntent(
            subtitle_path=str(tmp_path / "gone.srt"), imdb_id="1", language_id="eng"
        )

        with pytest.raises(ValidationError) as exc_info:
            build_negotiation_params(intent)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_video_group_is_complete(self, subtitle_file: Path, video_file: Path) -> None:
        """Test video hash, size and filename are set together"""
        intent = UploadIntent(subtitle_path=str(subtitle_file), video_path=str(video_file))

        params = build_negotiation_params(intent)

        assert _video_group(params.file) == 3
        assert params.file.moviehash == fingerprint(str(video_file)).hash
        assert params.file.moviebytesize == str(VIDEO_SIZE)
        assert params.file.moviefilename == video_file.name

    def test_video_filename_override(self, subtitle_file: Path, video_file: Path) -> None:
        """Test explicit filenames take precedence over basenames"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file),
            video_path=str(video_file),
            subtitle_filename="custom.srt",
            video_filename="custom.mkv",
        )

        params = build_negotiation_params(intent)

        assert params.file.subfilename == "custom.srt"
        assert params.file.moviefilename == "custom.mkv"

    def test_video_too_small(self, subtitle_file: Path, tmp_path: Path) -> None:
        """Test a video below the fingerprint window fails validation"""
        video = write_video(tmp_path / "tiny.mkv", 1000)
        intent = UploadIntent(subtitle_path=str(subtitle_file), video_path=str(video))

        with pytest.raises(ValidationError, match="fingerprint"):
            build_negotiation_params(intent)

    def test_video_missing(self, subtitle_file: Path, tmp_path: Path) -> None:
        """Test a missing video fails validation"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file), video_path=str(tmp_path / "missing.mkv")
        )

        with pytest.raises(ValidationError):
            build_negotiation_params(intent)

    def test_numeric_hints_only_when_positive(self, subtitle_file: Path) -> None:
        """Test zero or negative hints are omitted"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file),
            imdb_id="1234567",
            language_id="eng",
            fps=0,
            time_ms=-5,
            frames=0,
        )

        params = build_negotiation_params(intent)

        assert params.file.moviefps == ""
        assert params.file.movietimems == ""
        assert params.file.movieframes == ""

    def test_numeric_hints_as_strings(self, subtitle_file: Path) -> None:
        """Test positive hints are string encoded"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file),
            imdb_id="1234567",
            language_id="eng",
            fps=23.976,
            time_ms=5400000,
            frames=129470,
        )

        params = build_negotiation_params(intent)

        assert params.file.moviefps == "23.976"
        assert params.file.movietimems == "5400000"
        assert params.file.movieframes == "129470"

    def test_flags_always_emitted(self, subtitle_file: Path) -> None:
        """Test all four flags render as "1" or "0" on the wire"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file),
            imdb_id="1234567",
            language_id="eng",
            hearing_impaired=True,
            foreign_parts_only=True,
        )

        wire = build_negotiation_params(intent).to_wire()

        assert wire["hearingimpaired"] == "1"
        assert wire["highdefinition"] == "0"
        assert wire["automatictranslation"] == "0"
        assert wire["foreignpartsonly"] == "1"

    def test_to_wire_omits_empty_fields(self, subtitle_file: Path) -> None:
        """Test optional fields are left out of the struct when empty"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file), imdb_id="1234567", language_id="eng"
        )

        wire = build_negotiation_params(intent).to_wire()

        assert "subauthorcomment" not in wire
        assert set(wire["cd1"]) == {"subhash", "subfilename"}


class TestStripImdbPrefix:
    """Test external id normalization"""

    @pytest.mark.parametrize(
        "value, expected",
        [("tt1234567", "1234567"), ("1234567", "1234567"), ("tt", "tt"), ("", "")],
    )
    def test_strip(self, value: str, expected: str) -> None:
        assert strip_imdb_prefix(value) == expected


class TestPartialVideoGroup:
    """Test the all-or-nothing video group rule on the model"""

    def test_partial_group_rejected(self) -> None:
        with pytest.raises(ValueError):
            NegotiationFileItem(subhash="x", subfilename="a.srt", moviehash="abcd")


class TestBuildCommitParams:
    """Test UploadSubtitles parameter building"""

    def test_typed_values(self, subtitle_file: Path, video_file: Path) -> None:
        """Test string fields are parsed into numbers"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file),
            video_path=str(video_file),
            fps=25,
            time_ms=1000,
            frames=25,
        )
        negotiation = build_negotiation_params(intent)

        commit = build_commit_params(negotiation, str(subtitle_file))

        assert commit.file.moviebytesize == float(VIDEO_SIZE)
        assert commit.file.moviefps == 25.0
        assert commit.file.movietimems == 1000
        assert commit.file.movieframes == 25
        assert commit.file.moviehash == negotiation.file.moviehash
        assert base64.b64decode(commit.file.subcontent) == SUBTITLE_TEXT

    def test_empty_strings_are_zero(self, subtitle_file: Path) -> None:
        """Test absent numeric fields map to zero values"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file), imdb_id="1234567", language_id="eng"
        )

        commit = build_commit_params(build_negotiation_params(intent), str(subtitle_file))

        assert commit.file.moviebytesize == 0.0
        assert commit.file.moviefps == 0.0
        assert commit.file.movietimems == 0
        assert commit.file.movieframes == 0
        assert "moviebytesize" not in commit.to_wire()["cd1"]

    def test_digest_recomputed(self, subtitle_file: Path) -> None:
        """Test the commit digest comes from the current file bytes"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file), imdb_id="1234567", language_id="eng"
        )
        negotiation = build_negotiation_params(intent)
        subtitle_file.write_bytes(b"changed content\n")

        commit = build_commit_params(negotiation, str(subtitle_file))

        assert commit.file.subhash == hashlib.md5(b"changed content\n").hexdigest()
        assert commit.file.subhash != negotiation.file.subhash

    def test_no_file_entry(self, subtitle_file: Path) -> None:
        """Test missing file entry fails"""
        with pytest.raises(ValidationError):
            build_commit_params(NegotiationParameters(), str(subtitle_file))

    @pytest.mark.parametrize("value", ["12.5", "1_000", " 25 ", "25\n", "+", "0x10", "１２"])
    def test_malformed_number(self, subtitle_file: Path, value: str) -> None:
        """Test malformed integer strings raise ParseError"""
        negotiation = NegotiationParameters(
            file=NegotiationFileItem(subhash="x", subfilename="a.srt", movieframes=value)
        )

        with pytest.raises(ParseError, match="movieframes"):
            build_commit_params(negotiation, str(subtitle_file))

    @pytest.mark.parametrize("value", ["fast", "1_000.5", " 23.976", "23.976 ", "nan", "inf", "."])
    def test_malformed_fps(self, subtitle_file: Path, value: str) -> None:
        """Test malformed decimal strings raise ParseError"""
        negotiation = NegotiationParameters(
            file=NegotiationFileItem(subhash="x", subfilename="a.srt", moviefps=value)
        )

        with pytest.raises(ParseError, match="moviefps"):
            build_commit_params(negotiation, str(subtitle_file))

    @pytest.mark.parametrize(
        "fps, frames, expected_fps, expected_frames",
        [("23.976", "-1", 23.976, -1), (".5", "+7", 0.5, 7), ("25.", "007", 25.0, 7), ("2.5e1", "0", 25.0, 0)],
    )
    def test_well_formed_numbers(
        self, subtitle_file: Path, fps: str, frames: str, expected_fps: float, expected_frames: int
    ) -> None:
        """Test plain decimal notation is accepted"""
        negotiation = NegotiationParameters(
            file=NegotiationFileItem(subhash="x", subfilename="a.srt", moviefps=fps, movieframes=frames)
        )

        commit = build_commit_params(negotiation, str(subtitle_file))

        assert commit.file.moviefps == expected_fps
        assert commit.file.movieframes == expected_frames

    def test_empty_subtitle_content(self, tmp_path: Path) -> None:
        """Test an empty subtitle cannot be committed"""
        path = tmp_path / "empty.srt"
        path.write_bytes(b"")
        negotiation = NegotiationParameters(
            file=NegotiationFileItem(subhash="x", subfilename="empty.srt")
        )

        with pytest.raises(ValidationError, match="empty"):
            build_commit_params(negotiation, str(path))

    def test_baseinfo_copied(self, subtitle_file: Path) -> None:
        """Test metadata and flags are carried into baseinfo verbatim"""
        intent = UploadIntent(
            subtitle_path=str(subtitle_file),
            imdb_id="tt7654321",
            language_id="spa",
            release_name="Movie.2020.1080p.WEB",
            movie_aka="La Pelicula",
            comment="synced",
            translator="davru",
            high_definition=True,
            hearing_impaired=False,
            automatic_translation=True,
            foreign_parts_only=False,
        )

        commit = build_commit_params(build_negotiation_params(intent), str(subtitle_file))
        wire = commit.to_wire()

        assert wire["baseinfo"] == {
            "idmovieimdb": "7654321",
            "sublanguageid": "spa",
            "moviereleasename": "Movie.2020.1080p.WEB",
            "movieaka": "La Pelicula",
            "subauthorcomment": "synced",
            "subtranslator": "davru",
            "hearingimpaired": "0",
            "highdefinition": "1",
            "foreignpartsonly": "0",
        }
