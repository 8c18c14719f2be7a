from __future__ import annotations

from typing import Optional

from ..errors import EmptyInput, FileTooLarge, InputTooLarge, InvalidFileType, MissingInput
from ..models.meeting import MeetingInput, SourceKind

MAX_TEXT_CHARS = 50_000
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_UPLOAD_TYPE = "text/plain"


def check_upload(content_type: Optional[str], size: int) -> None:
    """Enforce the upload limits: plain text only, at most 10MB.

    Media type parameters (e.g. `; charset=utf-8`) are ignored.
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type != ALLOWED_UPLOAD_TYPE:
        raise InvalidFileType()
    if size > MAX_UPLOAD_BYTES:
        raise FileTooLarge()


def decode_upload(data: bytes) -> str:
    # Undecodable bytes become U+FFFD rather than failing the request
    return data.decode("utf-8", errors="replace")


def normalize(text: Optional[str], file_text: Optional[str] = None) -> MeetingInput:
    """Resolve the request's meeting text into a MeetingInput.

    An uploaded file wins over the `text` field when both are sent. The text is
    trimmed, and the 50,000 character limit applies to the trimmed text.
    """
    if file_text is None and text is None:
        raise MissingInput()

    if file_text is not None:
        raw, kind = file_text, SourceKind.UPLOADED_FILE
    else:
        raw, kind = text, SourceKind.RAW_TEXT

    trimmed = raw.strip()
    if not trimmed:
        raise EmptyInput()
    if len(trimmed) > MAX_TEXT_CHARS:
        raise InputTooLarge()
    return MeetingInput(text=trimmed, source_kind=kind)
