import base64
import hashlib

from subupload.services.models import EncodedPayload

CHUNK_SIZE = 8192


def digest(path: str) -> str:
    """MD5 of the raw file bytes, as 32 lowercase hex characters."""
    h = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def encode_payload(path: str) -> EncodedPayload:
    """
    Read the file once and return its base64 content with the digest of those bytes.

    The content is not compressed or re-encoded, so the digest always matches what
    is transmitted.
    """
    with open(path, "rb") as f:
        data = f.read()
    return EncodedPayload(
        content=base64.b64encode(data).decode("ascii"),
        digest=hashlib.md5(data).hexdigest(),
    )


def hash_password(password: str) -> str:
    """The legacy login accepts the MD5 hex of the password instead of the plaintext."""
    return hashlib.md5(password.encode("utf-8")).hexdigest()
