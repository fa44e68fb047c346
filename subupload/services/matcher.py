"""
Builds UploadIntents from a folder of videos and subtitles.

Videos and subtitles are paired by comparing their filenames once release tags,
language tags and subtitle flags are stripped, e.g. `Movie.2020.1080p.BluRay.mkv`
pairs with `Movie.2020.eng.sdh.srt`. The subtitle filename also gives the upload
language and the hearing-impaired / forced (foreign parts only) flags.
"""

import os

from subupload.services.models import UploadIntent
from subupload.utils.logger import log

VIDEO_EXTENSIONS = {".mkv", ".mp4", ".avi", ".mov", ".wmv", ".flv"}
SUBTITLE_EXTENSIONS = {".srt", ".sub", ".ssa", ".ass", ".vtt"}

HEARING_IMPAIRED_TERMS = {"hi", "sdh", "hearingimpaired"}
FORCED_TERMS = {"forced", "frc"}

# (upload language id, names the language goes by in filenames)
_LANGUAGES = [
    ("eng", ["en", "eng", "english"]),
    ("gre", ["el", "ell", "gre", "greek"]),
    ("spa", ["es", "spa", "spanish"]),
    ("fre", ["fr", "fra", "fre", "french"]),
    ("ger", ["de", "deu", "ger", "german"]),
    ("ita", ["it", "ita", "italian"]),
    ("por", ["pt", "por", "pt-pt", "portuguese"]),
    ("pob", ["pt-br", "pob", "brazilian"]),
    ("chi", ["zh", "zho", "chi", "zh-cn", "chinese"]),
    ("zht", ["zh-tw", "zht"]),
    ("afr", ["af", "afr", "afrikaans"]),
    ("alb", ["sq", "sqi", "alb", "albanian"]),
    ("ara", ["ar", "ara", "arabic"]),
    ("arm", ["hy", "hye", "arm", "armenian"]),
    ("baq", ["eu", "eus", "baq", "basque"]),
    ("ben", ["bn", "ben", "bengali"]),
    ("bul", ["bg", "bul", "bulgarian"]),
    ("cat", ["ca", "cat", "catalan"]),
    ("hrv", ["hr", "hrv", "croatian"]),
    ("cze", ["cs", "ces", "cze", "czech"]),
    ("dan", ["da", "dan", "danish"]),
    ("dut", ["nl", "nld", "dut", "dutch"]),
    ("fin", ["fi", "fin", "finnish"]),
    ("heb", ["he", "heb", "hebrew"]),
    ("hin", ["hin", "hindi"]),
    ("hun", ["hu", "hun", "hungarian"]),
    ("ind", ["id", "ind", "indonesian"]),
    ("jpn", ["ja", "jpn", "japanese"]),
    ("kor", ["ko", "kor", "korean"]),
    ("lav", ["lv", "lav", "latvian"]),
    ("lit", ["lt", "lit", "lithuanian"]),
    ("mac", ["mk", "mkd", "mac", "macedonian"]),
    ("may", ["ms", "msa", "may", "malay"]),
    ("nor", ["no", "nor", "norwegian"]),
    ("per", ["fa", "fas", "per", "persian"]),
    ("pol", ["pl", "pol", "polish"]),
    ("rum", ["ro", "ron", "rum", "romanian"]),
    ("rus", ["ru", "rus", "russian"]),
    ("scc", ["sr", "srp", "scc", "serbian"]),
    ("slo", ["sk", "slk", "slo", "slovak"]),
    ("slv", ["sl", "slv", "slovenian"]),
    ("swe", ["sv", "swe", "swedish"]),
    ("tha", ["th", "tha", "thai"]),
    ("tur", ["tr", "tur", "turkish"]),
    ("ukr", ["uk", "ukr", "ukrainian"]),
    ("vie", ["vi", "vie", "vietnamese"]),
]

LANGUAGES = {alias: code for code, aliases in _LANGUAGES for alias in aliases}

# Longest first so "web dl" goes before "web"
RELEASE_TAGS = sorted(
    [
        "directors cut", "extended cut",
        "web dl", "webrip", "web cap", "web", "hdtv", "hdrip", "bdrip", "brrip", "bluray",
        "dvdrip", "dvdr",
        "1080p", "720p", "2160p", "4k", "uhd", "sd",
        "x264", "h264", "x265", "h265", "hevc",
        "aac", "ac3", "eac3", "dts", "truehd",
        "remux", "repack", "proper", "internal", "limited", "extended", "uncut",
    ],
    key=len,
    reverse=True,
)


def _words(text: str) -> list:
    for sep in "._-":
        text = text.replace(sep, " ")
    return text.split()


def _stem(filename: str) -> str:
    return os.path.splitext(os.path.basename(filename))[0].lower()


def detect_language(filename: str) -> str:
    """Upload language id from the last language-looking word of a subtitle name, or ""."""
    stem = _stem(filename)
    # "pt-br" style tags are split by _words, so look for them first
    for tag in ("pt-br", "pt-pt", "zh-cn", "zh-tw"):
        if stem.endswith(tag) or f"{tag}." in stem:
            return LANGUAGES[tag]
    for word in reversed(_words(stem)):
        if word in LANGUAGES:
            return LANGUAGES[word]
    return ""


def analyze_flags(filename: str) -> tuple:
    """Return (hearing_impaired, forced) from the subtitle filename words."""
    words = set(_words(_stem(filename)))
    return bool(words & HEARING_IMPAIRED_TERMS), bool(words & FORCED_TERMS)


def normalize_for_matching(filename: str) -> str:
    words = [w for w in _words(_stem(filename)) if w not in HEARING_IMPAIRED_TERMS | FORCED_TERMS]

    if words and words[-1] in LANGUAGES:
        words = words[:-1]
    elif len(words) > 1 and f"{words[-2]}-{words[-1]}" in LANGUAGES:
        words = words[:-2]

    text = f" {' '.join(words)} "
    for _ in range(2):  # second pass catches tags that shared a separator
        for tag in RELEASE_TAGS:
            text = text.replace(f" {tag} ", " ")

    return " ".join(w for w in text.split() if len(w) > 1 or not w.isdigit())


def match_video_subtitle(video_filename: str, subtitle_filename: str) -> bool:
    if not video_filename or not subtitle_filename:
        return False
    video = normalize_for_matching(video_filename)
    subtitle = normalize_for_matching(subtitle_filename)
    return bool(video) and video == subtitle


def find_matching_subtitle(video_path: str, subtitle_paths: list) -> str:
    for path in subtitle_paths:
        if match_video_subtitle(os.path.basename(video_path), os.path.basename(path)):
            return path
    return ""


def _raise(error):
    raise error


def scan_directory(root: str) -> tuple:
    """Walk root recursively and return sorted (video_paths, subtitle_paths)."""
    if not os.path.isdir(root):
        raise NotADirectoryError(f"Not a directory: {root}")

    videos, subtitles = [], []
    for dirpath, _, filenames in os.walk(root, onerror=_raise):
        for name in filenames:
            ext = os.path.splitext(name)[1].lower()
            if ext in VIDEO_EXTENSIONS:
                videos.append(os.path.join(dirpath, name))
            elif ext in SUBTITLE_EXTENSIONS:
                subtitles.append(os.path.join(dirpath, name))

    log.file(f"Scan complete: {len(videos)} videos and {len(subtitles)} subtitles in {root}")
    return sorted(videos), sorted(subtitles)


def _intent(subtitle_path: str, video_path: str, imdb_id: str, language_id: str):
    language = detect_language(subtitle_path) or language_id
    if not language:
        log.warning(f"Skipping {os.path.basename(subtitle_path)}: language could not be detected")
        return None

    hearing_impaired, forced = analyze_flags(subtitle_path)
    release_name = os.path.splitext(os.path.basename(video_path))[0] if video_path else ""
    return UploadIntent(
        subtitle_path=subtitle_path,
        video_path=video_path,
        imdb_id=imdb_id,
        language_id=language,
        release_name=release_name,
        hearing_impaired=hearing_impaired,
        foreign_parts_only=forced,
    )


def build_intents(root: str, imdb_id: str = "", language_id: str = "") -> list:
    """
    Pair the videos and subtitles under root and describe each pair as an UploadIntent.

    Each subtitle is used once. Subtitles without a matching video become
    subtitle-only intents. language_id is the fallback when the filename names no
    language; subtitles with neither are skipped.
    """
    videos, subtitles = scan_directory(root)
    used = set()
    intents = []

    for video in videos:
        subtitle = find_matching_subtitle(video, [s for s in subtitles if s not in used])
        if not subtitle:
            log.info(f"No matching subtitle for {os.path.basename(video)}")
            continue
        used.add(subtitle)
        intent = _intent(subtitle, video, imdb_id, language_id)
        if intent is not None:
            intents.append(intent)

    for subtitle in subtitles:
        if subtitle in used:
            continue
        intent = _intent(subtitle, "", imdb_id, language_id)
        if intent is not None:
            intents.append(intent)

    log.success(f"Prepared {len(intents)} uploads from {root}")
    return intents
