"""
Decoding of the loosely typed XML-RPC responses into small typed models.

The service is inconsistent about shapes: alreadyindb comes as int or double,
TryUploadSubtitles sometimes answers with a bare boolean, and UploadSubtitles may
omit its status. Everything is normalized here so the uploader only deals with
the models below.
"""

from typing import Any

from pydantic import BaseModel

from subupload.services.exceptions import RemoteError, UnexpectedResponseError

STATUS_OK = "200 OK"


def describe(raw: Any) -> str:
    text = repr(raw)
    if len(text) > 200:
        text = text[:200] + "..."
    return f"{type(raw).__name__}: {text}"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _expect_mapping(method: str, raw: Any) -> dict:
    if not isinstance(raw, dict):
        raise UnexpectedResponseError(f"Unexpected {method} response ({describe(raw)})", raw=raw)
    return raw


def _optional_status(method: str, raw: dict) -> str:
    status = raw.get("status")
    if status is None:
        return ""
    if not isinstance(status, str):
        raise UnexpectedResponseError(f"Unexpected {method} status ({describe(status)})", raw=raw)
    return status


class LoginResponse(BaseModel):
    status: str
    token: str = ""

    @classmethod
    def from_raw(cls, raw: Any) -> "LoginResponse":
        data = _expect_mapping("LogIn", raw)
        status = data.get("status")
        if not isinstance(status, str):
            raise UnexpectedResponseError(f"LogIn response has no status ({describe(raw)})", raw=raw)
        token = data.get("token") or ""
        if not isinstance(token, str):
            raise UnexpectedResponseError(f"LogIn token is not a string ({describe(token)})", raw=raw)
        return cls(status=status, token=token)


class StatusResponse(BaseModel):
    status: str

    @classmethod
    def from_raw(cls, raw: Any, method: str) -> "StatusResponse":
        data = _expect_mapping(method, raw)
        status = data.get("status")
        if not isinstance(status, str):
            raise UnexpectedResponseError(f"{method} response has no status ({describe(raw)})", raw=raw)
        return cls(status=status)


class NegotiationResponse(BaseModel):
    status: str = ""
    already_in_db: int = 0
    proceed: bool = False

    @property
    def is_duplicate(self) -> bool:
        return self.already_in_db == 1

    @classmethod
    def from_raw(cls, raw: Any) -> "NegotiationResponse":
        """
        Accepts a bare boolean or a struct with alreadyindb/data.

        Raises RemoteError on an explicit non-success status and
        UnexpectedResponseError for any other shape.
        """
        if isinstance(raw, bool):
            return cls(status=STATUS_OK, already_in_db=0 if raw else 1, proceed=raw)

        data = _expect_mapping("TryUploadSubtitles", raw)
        status = _optional_status("TryUploadSubtitles", data)
        if status and status != STATUS_OK:
            raise RemoteError(f"TryUploadSubtitles failed with status: {status}", status=status)

        already_in_db = data.get("alreadyindb", 0)
        if already_in_db is None:
            already_in_db = 0
        if not _is_number(already_in_db):
            raise UnexpectedResponseError(
                f"Unexpected alreadyindb value ({describe(already_in_db)})", raw=raw
            )
        already_in_db = int(already_in_db)

        if "data" not in data:
            proceed = False
        elif isinstance(data["data"], bool):
            proceed = data["data"]
        else:
            # data carries the matched movie info; its presence is the go-ahead
            proceed = already_in_db != 1

        return cls(status=status, already_in_db=already_in_db, proceed=proceed)


class CommitResponse(BaseModel):
    status: str = ""
    url: str = ""
    subtitles: bool = False

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @classmethod
    def from_raw(cls, raw: Any) -> "CommitResponse":
        data = _expect_mapping("UploadSubtitles", raw)
        status = _optional_status("UploadSubtitles", data)

        url = data.get("data")
        if url is None:
            url = ""
        if not isinstance(url, str):
            raise UnexpectedResponseError(f"Unexpected UploadSubtitles data ({describe(url)})", raw=raw)

        subtitles = data.get("subtitles", False)
        if subtitles is None:
            subtitles = False
        if not isinstance(subtitles, (bool, int)):
            raise UnexpectedResponseError(
                f"Unexpected UploadSubtitles subtitles flag ({describe(subtitles)})", raw=raw
            )

        return cls(status=status, url=url, subtitles=bool(subtitles))
