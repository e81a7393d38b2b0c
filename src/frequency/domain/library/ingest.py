"""
Track ingestion for Frequency.

Builds Track records from remote URLs and local audio files. Local files are
referenced by file URI, or embedded as base64 data: URLs when requested.
"""

import base64
import mimetypes
import random
import string
import time
from datetime import date
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlparse

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError

from frequency.domain.playlists.models import Track

DEFAULT_MAX_EMBED_BYTES = 8 * 1024 * 1024
DEFAULT_SUPPORTED_FORMATS = (".mp3", ".m4a", ".wav", ".flac", ".ogg", ".opus")
URL_SCHEMES = ("http", "https", "file", "data")

_ID_ALPHABET = string.digits + string.ascii_lowercase


class IngestError(ValueError):
    """Raised when a URL or file cannot become a track."""

    pass


def new_track_id(rng: Optional[random.Random] = None) -> str:
    """Millisecond timestamp plus a 9-character base-36 suffix.

    The suffix keeps ids unique when a batch is created in the same millisecond.
    """
    source = rng if rng is not None else random
    suffix = "".join(source.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}{suffix}"


def _today() -> str:
    return date.today().isoformat()


def track_from_url(title: str, url: str) -> Track:
    """
    Build a remote track.

    Raises:
        IngestError: If the title or url is blank, or the scheme is unsupported
    """
    title = (title or "").strip()
    url = (url or "").strip()
    if not title or not url:
        raise IngestError("Title and URL are both required")

    scheme = urlparse(url).scheme.lower()
    if scheme not in URL_SCHEMES:
        raise IngestError(
            f"Unsupported URL scheme {scheme or '(none)'!r}; "
            f"expected one of {', '.join(URL_SCHEMES)}"
        )

    return Track(
        id=new_track_id(),
        title=title,
        url=url,
        added_at=_today(),
        is_local=scheme in ("file", "data"),
    )


def read_title(path: Path) -> str:
    """Title tag from the file's metadata, falling back to the filename stem."""
    try:
        audio = MutagenFile(path, easy=True)
    except (MutagenError, OSError) as e:
        logger.debug(f"Could not read tags from {path}: {e}")
        audio = None

    if audio is not None and audio.tags is not None:
        value = audio.tags.get("title")
        if isinstance(value, list) and value:
            value = value[0]
        if value and str(value).strip():
            return str(value).strip()

    return path.stem


def embed_file(path: Path, max_bytes: int = DEFAULT_MAX_EMBED_BYTES) -> str:
    """
    Encode a file as a base64 data: URL.

    Raises:
        IngestError: If the file is larger than max_bytes
    """
    size = path.stat().st_size
    if size > max_bytes:
        raise IngestError(
            f"{path.name} is {size / (1024 * 1024):.1f} MB, "
            f"over the {max_bytes / (1024 * 1024):.0f} MB embed limit"
        )
    mime, _ = mimetypes.guess_type(path.name)
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{payload}"


def track_from_file(
    path: str | Path,
    embed: bool = False,
    max_embed_bytes: int = DEFAULT_MAX_EMBED_BYTES,
    supported_formats: Iterable[str] = DEFAULT_SUPPORTED_FORMATS,
) -> Track:
    """
    Build a local track from an audio file.

    Args:
        path: Audio file path
        embed: Store the file contents in the url instead of a file reference
        max_embed_bytes: Size limit for embedding
        supported_formats: Accepted file extensions (with leading dot)

    Raises:
        IngestError: If the file is missing, has an unsupported extension, or
            is too large to embed
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise IngestError(f"Not a file: {file_path}")

    formats = {f.lower() for f in supported_formats}
    if file_path.suffix.lower() not in formats:
        raise IngestError(
            f"Unsupported format {file_path.suffix or '(none)'!r} for {file_path.name}"
        )

    file_path = file_path.resolve()
    url = embed_file(file_path, max_embed_bytes) if embed else file_path.as_uri()

    return Track(
        id=new_track_id(),
        title=read_title(file_path),
        url=url,
        added_at=_today(),
        is_local=True,
    )


def tracks_from_paths(
    paths: Iterable[str | Path],
    embed: bool = False,
    max_embed_bytes: int = DEFAULT_MAX_EMBED_BYTES,
    supported_formats: Iterable[str] = DEFAULT_SUPPORTED_FORMATS,
) -> tuple[list[Track], list[str]]:
    """
    Build tracks for several files, skipping the ones that fail.

    Returns:
        (tracks, errors) - tracks in input order, and one message per skipped file
    """
    formats = tuple(supported_formats)
    tracks: list[Track] = []
    errors: list[str] = []
    for path in paths:
        try:
            tracks.append(
                track_from_file(
                    path,
                    embed=embed,
                    max_embed_bytes=max_embed_bytes,
                    supported_formats=formats,
                )
            )
        except (IngestError, OSError) as e:
            logger.warning(f"Skipping {path}: {e}")
            errors.append(str(e))
    return tracks, errors
