import threading

from subupload.services.exceptions import (
    AuthError,
    DuplicateError,
    NotLoggedInError,
    RemoteError,
    UnauthorizedError,
    UnknownClientError,
)
from subupload.services.models import SessionState, UploadIntent, UploadPhase, UploadResult
from subupload.services.normalizer import build_commit_params, build_negotiation_params
from subupload.services.responses import (
    STATUS_OK,
    CommitResponse,
    LoginResponse,
    NegotiationResponse,
    StatusResponse,
)
from subupload.utils.logger import log, mask_token

STATUS_UNAUTHORIZED = "401 Unauthorized"
STATUS_UNKNOWN_USER_AGENT = "414 Unknown User Agent"

EMPTY_URL_WARNING = "Upload reported success but returned no subtitle URL"


class SubtitleUploader:
    """
    Drives the TryUploadSubtitles -> UploadSubtitles exchange for one session.

    `rpc` is anything with a `call(method, args)` method returning the decoded
    XML-RPC value (see OpenSubtitlesRPC). Calls on one instance are serialized;
    use one instance per concurrent upload.
    """

    def __init__(self, rpc):
        self.rpc = rpc
        self.token = None
        self.state = SessionState.IDLE
        self.phase = None
        self._lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @property
    def logged_in(self) -> bool:
        return self.state == SessionState.AUTHENTICATED and bool(self.token)

    def _require_session(self):
        if not self.logged_in:
            raise NotLoggedInError("Not logged in")

    def login(self, username: str, hashed_password: str, language: str, user_agent: str):
        with self._lock:
            if self.state == SessionState.CLOSED:
                raise NotLoggedInError("Uploader is closed")

            # A new login replaces any previous session, even when it fails
            self.token = None
            self.state = SessionState.IDLE

            log.auth(f"Logging in as {username or '<anonymous>'}")
            raw = self.rpc.call("LogIn", [username, hashed_password, language, user_agent])
            response = LoginResponse.from_raw(raw)

            if response.status == STATUS_UNAUTHORIZED:
                raise UnauthorizedError("Login rejected: invalid credentials", status=response.status)
            if response.status == STATUS_UNKNOWN_USER_AGENT:
                raise UnknownClientError(
                    f"Login rejected: {response.status} (provide a valid user agent)",
                    status=response.status,
                )
            if response.status != STATUS_OK:
                raise AuthError(f"Login failed with status: {response.status}", status=response.status)
            if not response.token:
                raise AuthError("Login succeeded but no token was returned", status=response.status)

            self.token = response.token
            self.state = SessionState.AUTHENTICATED
            log.success(f"Login successful (token {mask_token(self.token)})")

    def logout(self):
        with self._lock:
            self._require_session()
            raw = self.rpc.call("LogOut", [self.token])
            response = StatusResponse.from_raw(raw, "LogOut")
            if response.status != STATUS_OK:
                raise RemoteError(f"Logout failed with status: {response.status}", status=response.status)

            self.token = None
            self.state = SessionState.IDLE
            log.auth("Logged out")

    def upload(self, intent: UploadIntent) -> UploadResult:
        """
        Negotiate and commit one subtitle.

        Raises DuplicateError without committing when the service already has
        the subtitle or does not give an explicit go-ahead. The session is kept
        whatever the outcome.
        """
        with self._lock:
            self._require_session()
            self.phase = None

            negotiation = build_negotiation_params(intent)
            subfilename = negotiation.file.subfilename
            log.upload(f"Checking {subfilename} against the database")

            raw = self.rpc.call("TryUploadSubtitles", [self.token, negotiation.to_wire()])
            response = NegotiationResponse.from_raw(raw)
            if response.is_duplicate:
                self.phase = UploadPhase.REJECTED
                raise DuplicateError(f"Subtitle {subfilename} is already in the database")
            self.phase = UploadPhase.NEGOTIATION_SENT
            if not response.proceed:
                self.phase = UploadPhase.REJECTED
                raise DuplicateError(f"Service declined the upload of {subfilename}")

            commit = build_commit_params(negotiation, intent.subtitle_path)
            log.upload(f"Uploading {subfilename} ({len(commit.file.subcontent)} base64 bytes)")

            self.phase = UploadPhase.COMMIT_SENT
            raw = self.rpc.call("UploadSubtitles", [self.token, commit.to_wire()])
            response = CommitResponse.from_raw(raw)
            if not response.ok:
                log.error(f"UploadSubtitles failed. Status: {response.status or '<none>'}")
                raise RemoteError(
                    f"UploadSubtitles failed with status: {response.status or '<none>'}",
                    status=response.status,
                )

            result = UploadResult(url=response.url)
            if not response.url:
                log.warning(f"{EMPTY_URL_WARNING} ({subfilename})")
                result.warnings.append(EMPTY_URL_WARNING)
            else:
                log.success(f"Upload completed: {response.url}")

            self.phase = UploadPhase.COMPLETED
            return result

    def close(self):
        with self._lock:
            if self.state == SessionState.CLOSED:
                return
            self.token = None
            self.state = SessionState.CLOSED
            close = getattr(self.rpc, "close", None)
            if close is not None:
                close()
