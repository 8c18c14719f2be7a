from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..errors import InputTooLarge
from ..logging import request_id_of
from ..models.meeting import ProcessMeetingResponse, ResponseMetadata, ServiceInfo
from ..services.extraction import MeetingNotesProcessor
from ..services.normalizer import MAX_UPLOAD_BYTES, check_upload, decode_upload, normalize
from ..state import get_processor

logger = logging.getLogger("minutes.api")

router = APIRouter(tags=["meetings"])


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def _read_input(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """Pull (text, file_text) out of a JSON, multipart or urlencoded body.

    Upload limits are enforced here, before any text reaches the pipeline. At
    most one byte past the upload limit is read from the file.
    A `text` value that is not a string counts as absent.
    """
    content_type = request.headers.get("content-type", "").lower()
    text: Any = None
    file_text: Optional[str] = None

    if content_type.startswith("multipart/form-data") or content_type.startswith(
        "application/x-www-form-urlencoded"
    ):
        try:
            form = await request.form()
        except StarletteHTTPException as e:
            # Starlette caps non-file parts (1MB); such a text field is over our limit too
            if e.status_code == 400 and "maximum size" in str(e.detail):
                raise InputTooLarge() from e
            raise
        text = form.get("text")
        upload = form.get("file")
        if isinstance(upload, UploadFile) and upload.filename:
            data = await upload.read(MAX_UPLOAD_BYTES + 1)
            check_upload(upload.content_type, len(data))
            file_text = decode_upload(data)
    else:
        raw = await request.body()
        if raw:
            try:
                body = json.loads(raw)
            except ValueError:
                body = None
            if isinstance(body, dict):
                text = body.get("text")

    if not isinstance(text, str):
        text = None
    return text, file_text


@router.get("/", response_model=ServiceInfo)
def service_info() -> ServiceInfo:
    return ServiceInfo(
        message="Meeting Minutes Extractor API",
        version=__version__,
        endpoints={
            "POST /process-meeting": "Process meeting notes (text body or file upload)",
            "GET /health": "Liveness check",
            "GET /ui/": "Demo frontend",
        },
    )


@router.post("/process-meeting", response_model=ProcessMeetingResponse)
async def process_meeting(
    request: Request,
    processor: MeetingNotesProcessor = Depends(get_processor),
) -> ProcessMeetingResponse:
    text, file_text = await _read_input(request)
    meeting = normalize(text, file_text)
    request_id = request_id_of(request)
    logger.info(
        f"processing meeting notes source={meeting.source_kind.value} chars={len(meeting.text)}",
        extra={"request_id": request_id},
    )

    # Blocking upstream call; run it off the event loop
    result = await run_in_threadpool(processor.extract, meeting.text, request_id)

    return ProcessMeetingResponse(
        data=dict(result),
        metadata=ResponseMetadata(
            processed_at=_utc_now_iso(),
            input_length=len(meeting.text),
            input_type=meeting.source_kind.value,
        ),
    )
