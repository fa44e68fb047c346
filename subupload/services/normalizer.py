"""
Turns an UploadIntent into the parameter sets of the two upload calls.

TryUploadSubtitles expects every value as a string, UploadSubtitles expects the
numeric file fields typed. The negotiation parameters are built first and the
commit parameters are derived from them right before the commit call.
"""

import os
import re

from subupload.services import hasher
from subupload.services.exceptions import ParseError, TooSmallError, ValidationError
from subupload.services.fingerprint import fingerprint
from subupload.services.models import (
    CommitBaseInfo,
    CommitFileItem,
    CommitParameters,
    NegotiationFileItem,
    NegotiationParameters,
    UploadIntent,
)
from subupload.utils.logger import log

IMDB_PREFIX = "tt"


def bool_flag(value: bool) -> str:
    return "1" if value else "0"


def strip_imdb_prefix(imdb_id: str) -> str:
    imdb_id = imdb_id.strip()
    if len(imdb_id) > len(IMDB_PREFIX) and imdb_id.startswith(IMDB_PREFIX):
        return imdb_id[len(IMDB_PREFIX):]
    return imdb_id


def build_negotiation_params(intent: UploadIntent) -> NegotiationParameters:
    """Build the TryUploadSubtitles parameters, raising ValidationError on bad intent."""
    imdb_id = strip_imdb_prefix(intent.imdb_id)
    language_id = intent.language_id.strip()

    # Subtitle hash & filename are always mandatory
    if not intent.subtitle_path:
        raise ValidationError("Subtitle file path is required")
    try:
        subhash = hasher.digest(intent.subtitle_path)
    except OSError as e:
        raise ValidationError(f"Failed to hash subtitle '{intent.subtitle_path}': {e}") from e
    subfilename = intent.subtitle_filename or os.path.basename(intent.subtitle_path)
    if not subfilename:
        raise ValidationError("Subtitle filename is required")

    file_item = {"subhash": subhash, "subfilename": subfilename}

    if intent.video_path:
        try:
            video = fingerprint(intent.video_path)
        except (OSError, TooSmallError) as e:
            raise ValidationError(f"Failed to fingerprint video '{intent.video_path}': {e}") from e
        moviefilename = intent.video_filename or os.path.basename(intent.video_path)
        if not moviefilename:
            raise ValidationError("Video filename is required when a video file is provided")
        file_item["moviehash"] = video.hash
        file_item["moviebytesize"] = str(video.byte_size)
        file_item["moviefilename"] = moviefilename
    else:
        if not language_id:
            raise ValidationError("Language ID is required if no video file is provided")
        if not imdb_id:
            raise ValidationError("IMDb ID is required if no video file is provided")

    # Zero or negative hints mean "not provided"
    if intent.fps > 0:
        file_item["moviefps"] = f"{intent.fps:.3f}"
    if intent.time_ms > 0:
        file_item["movietimems"] = str(intent.time_ms)
    if intent.frames > 0:
        file_item["movieframes"] = str(intent.frames)

    params = NegotiationParameters(
        idmovieimdb=imdb_id,
        sublanguageid=language_id,
        subauthorcomment=intent.comment,
        subtranslator=intent.translator,
        moviereleasename=intent.release_name,
        movieaka=intent.movie_aka,
        hearingimpaired=bool_flag(intent.hearing_impaired),
        highdefinition=bool_flag(intent.high_definition),
        automatictranslation=bool_flag(intent.automatic_translation),
        foreignpartsonly=bool_flag(intent.foreign_parts_only),
        file=NegotiationFileItem(**file_item),
    )
    log.file(f"Prepared negotiation for {subfilename} (video: {params.file.has_video})")
    return params


# Plain decimal notation only: no surrounding whitespace, no digit separators
_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def _parse_float(name: str, value: str) -> float:
    if value == "":
        return 0.0
    if not _FLOAT_RE.fullmatch(value):
        raise ParseError(f"Failed to parse {name} '{value}'")
    return float(value)


def _parse_int(name: str, value: str) -> int:
    if value == "":
        return 0
    if not _INT_RE.fullmatch(value):
        raise ParseError(f"Failed to parse {name} '{value}'")
    return int(value)


def build_commit_params(negotiation: NegotiationParameters, subtitle_path: str) -> CommitParameters:
    """
    Build the UploadSubtitles parameters.

    The subtitle is re-read from subtitle_path: the digest sent here is the one of
    the bytes being transmitted, whatever the negotiation carried.
    """
    cd1 = negotiation.file
    if cd1 is None:
        raise ValidationError("Negotiation parameters have no file entry")

    payload = hasher.encode_payload(subtitle_path)
    if not payload.content:
        raise ValidationError(f"Subtitle file '{subtitle_path}' is empty")

    file_item = CommitFileItem(
        subhash=payload.digest,
        subfilename=cd1.subfilename,
        subcontent=payload.content,
        moviehash=cd1.moviehash,
        moviebytesize=_parse_float("moviebytesize", cd1.moviebytesize),
        moviefilename=cd1.moviefilename,
        moviefps=_parse_float("moviefps", cd1.moviefps),
        movietimems=_parse_int("movietimems", cd1.movietimems),
        movieframes=_parse_int("movieframes", cd1.movieframes),
    )
    baseinfo = CommitBaseInfo(
        idmovieimdb=negotiation.idmovieimdb,
        sublanguageid=negotiation.sublanguageid,
        moviereleasename=negotiation.moviereleasename,
        movieaka=negotiation.movieaka,
        subauthorcomment=negotiation.subauthorcomment,
        subtranslator=negotiation.subtranslator,
        hearingimpaired=negotiation.hearingimpaired,
        highdefinition=negotiation.highdefinition,
        foreignpartsonly=negotiation.foreignpartsonly,
    )
    if payload.digest != cd1.subhash:
        log.warning(f"Subtitle {cd1.subfilename} changed since negotiation, sending the new digest")
    return CommitParameters(baseinfo=baseinfo, file=file_item)
