from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator


class UploadIntent(BaseModel):
    """What the caller wants to upload. Read-only for the whole attempt."""

    model_config = ConfigDict(frozen=True)

    subtitle_path: str
    video_path: str = ""
    subtitle_filename: str = ""  # defaults to the basename of subtitle_path
    video_filename: str = ""  # defaults to the basename of video_path
    imdb_id: str = ""  # "tt1234567" or "1234567"
    language_id: str = ""  # e.g. "eng"
    release_name: str = ""
    movie_aka: str = ""
    comment: str = ""
    translator: str = ""
    fps: float = 0.0
    frames: int = 0
    time_ms: int = 0
    high_definition: bool = False
    hearing_impaired: bool = False
    automatic_translation: bool = False
    foreign_parts_only: bool = False


class Fingerprint(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str
    byte_size: int


class EncodedPayload(BaseModel):
    """Base64 subtitle content and the MD5 of the very same bytes."""

    model_config = ConfigDict(frozen=True)

    content: str
    digest: str


def _drop_empty(values: dict) -> dict:
    return {key: value for key, value in values.items() if value not in ("", 0, 0.0, None)}


class NegotiationFileItem(BaseModel):
    """Per-file part of TryUploadSubtitles. Every value is a string on the wire."""

    model_config = ConfigDict(validate_assignment=True)

    subhash: str
    subfilename: str
    moviehash: str = ""
    moviebytesize: str = ""
    moviefilename: str = ""
    moviefps: str = ""
    movietimems: str = ""
    movieframes: str = ""

    @model_validator(mode="after")
    def check_video_group(self):
        present = [bool(self.moviehash), bool(self.moviebytesize), bool(self.moviefilename)]
        if any(present) and not all(present):
            raise ValueError("moviehash, moviebytesize and moviefilename must be set together")
        return self

    @property
    def has_video(self) -> bool:
        return bool(self.moviehash)


class NegotiationParameters(BaseModel):
    idmovieimdb: str = ""
    sublanguageid: str = ""
    subauthorcomment: str = ""
    subtranslator: str = ""
    moviereleasename: str = ""
    movieaka: str = ""
    hearingimpaired: str = "0"
    highdefinition: str = "0"
    automatictranslation: str = "0"
    foreignpartsonly: str = "0"
    file: NegotiationFileItem | None = None

    def to_wire(self) -> dict:
        wire = _drop_empty(self.model_dump(exclude={"file"}))
        if self.file is not None:
            wire["cd1"] = _drop_empty(self.file.model_dump())
        return wire


class CommitBaseInfo(BaseModel):
    idmovieimdb: str = ""
    sublanguageid: str = ""
    moviereleasename: str = ""
    movieaka: str = ""
    subauthorcomment: str = ""
    subtranslator: str = ""
    hearingimpaired: str = ""
    highdefinition: str = ""
    foreignpartsonly: str = ""


class CommitFileItem(BaseModel):
    """Per-file part of UploadSubtitles, numeric values typed."""

    subhash: str
    subfilename: str
    subcontent: str
    moviehash: str = ""
    moviebytesize: float = 0.0
    moviefilename: str = ""
    moviefps: float = 0.0
    movietimems: int = 0
    movieframes: int = 0

    @model_validator(mode="after")
    def check_video_group(self):
        present = [bool(self.moviehash), bool(self.moviebytesize), bool(self.moviefilename)]
        if any(present) and not all(present):
            raise ValueError("moviehash, moviebytesize and moviefilename must be set together")
        return self


class CommitParameters(BaseModel):
    baseinfo: CommitBaseInfo
    file: CommitFileItem

    def to_wire(self) -> dict:
        return {
            "baseinfo": _drop_empty(self.baseinfo.model_dump()),
            "cd1": _drop_empty(self.file.model_dump()),
        }


class SessionState(str, Enum):
    IDLE = "idle"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class UploadPhase(str, Enum):
    NEGOTIATION_SENT = "negotiation_sent"
    REJECTED = "rejected"
    COMMIT_SENT = "commit_sent"
    COMPLETED = "completed"


class UploadResult(BaseModel):
    url: str = ""
    warnings: List[str] = Field(default_factory=list)
