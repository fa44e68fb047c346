import xmlrpc.client

import requests
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from subupload.services import matcher, opensubtitles
from subupload.services.exceptions import (
    AuthError,
    DuplicateError,
    ParseError,
    RemoteError,
    TooSmallError,
    UnexpectedResponseError,
    ValidationError,
)
from subupload.services.fingerprint import fingerprint
from subupload.services.hasher import hash_password
from subupload.services.models import UploadIntent
from subupload.services.uploader import SubtitleUploader
from subupload.utils.logger import log

app = FastAPI()


class FingerprintRequest(BaseModel):
    path: str


class UploadRequest(UploadIntent):
    pass


def make_uploader() -> SubtitleUploader:
    return SubtitleUploader(opensubtitles.OpenSubtitlesRPC())


@app.post("/api/fingerprint")
def fingerprint_video(request: FingerprintRequest):
    """Fingerprint a local video file the way OpenSubtitles matches releases."""
    try:
        result = fingerprint(request.path)
    except TooSmallError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        raise HTTPException(status_code=404, detail=f"Cannot read {request.path}: {e}")
    return {"hash": result.hash, "byte_size": result.byte_size}


class ScanRequest(BaseModel):
    directory: str
    imdb_id: str = ""
    language_id: str = ""  # used when a subtitle filename names no language


@app.post("/api/scan")
def scan_directory(request: ScanRequest):
    """Pair the videos and subtitles of a local folder into upload requests."""
    try:
        intents = matcher.build_intents(request.directory, request.imdb_id, request.language_id)
    except OSError as e:
        raise HTTPException(status_code=404, detail=f"Cannot scan {request.directory}: {e}")
    return {"count": len(intents), "uploads": [intent.model_dump() for intent in intents]}


@app.post("/api/upload")
def upload_subtitle(request: UploadRequest):
    """Log in with the configured account, upload one subtitle, log out."""
    if not opensubtitles.USERNAME or not opensubtitles.PASSWORD:
        log.error("OPENSUBTITLES_USERNAME or OPENSUBTITLES_PASSWORD configuration missing")
        raise HTTPException(status_code=500, detail="OpenSubtitles credentials not configured")

    intent = UploadIntent(**request.model_dump())
    with make_uploader() as uploader:
        try:
            uploader.login(
                opensubtitles.USERNAME,
                hash_password(opensubtitles.PASSWORD),
                opensubtitles.LANGUAGE,
                opensubtitles.USER_AGENT,
            )
        except AuthError as e:
            raise HTTPException(status_code=401, detail=str(e))
        except (UnexpectedResponseError, xmlrpc.client.Fault) as e:
            raise HTTPException(status_code=502, detail=str(e))
        except requests.RequestException as e:
            raise HTTPException(status_code=502, detail=f"OpenSubtitles unreachable: {e}")

        try:
            result = uploader.upload(intent)
        except (ValidationError, ParseError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        except DuplicateError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except (RemoteError, UnexpectedResponseError, xmlrpc.client.Fault) as e:
            raise HTTPException(status_code=502, detail=str(e))
        except requests.RequestException as e:
            raise HTTPException(status_code=502, detail=f"OpenSubtitles unreachable: {e}")
        except OSError as e:
            # subtitle vanished or became unreadable between negotiation and commit
            raise HTTPException(status_code=404, detail=f"Cannot read {intent.subtitle_path}: {e}")
        finally:
            if uploader.logged_in:
                try:
                    uploader.logout()
                except (RemoteError, UnexpectedResponseError) as e:
                    log.warning(f"Logout failed: {e}")

    status = "warning" if result.warnings else "success"
    return {"status": status, "url": result.url, "warnings": result.warnings}
