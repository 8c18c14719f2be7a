from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, TypedDict

from pydantic import BaseModel, Field


class SourceKind(str, Enum):
    RAW_TEXT = "text"
    UPLOADED_FILE = "file"


@dataclass(frozen=True)
class MeetingInput:
    """Canonical, trimmed meeting text plus where it came from."""

    text: str
    source_kind: SourceKind


class ActionItem(TypedDict):
    task: str
    owner: Optional[str]
    due: Optional[str]


class ExtractionResult(TypedDict):
    # Keys are the wire names the model is asked to produce.
    summary: str
    decisions: List[str]
    actionItems: List[ActionItem]


class ResponseMetadata(BaseModel):
    processed_at: str = Field(..., alias="processedAt", description="ISO-8601 UTC timestamp")
    input_length: int = Field(..., alias="inputLength", description="Characters after trimming")
    input_type: Literal["text", "file"] = Field(..., alias="inputType")

    class Config:
        populate_by_name = True


class ProcessMeetingResponse(BaseModel):
    success: bool = True
    # Passed through as parsed; only its shape is checked upstream.
    data: Dict[str, Any]
    metadata: ResponseMetadata


class ServiceInfo(BaseModel):
    message: str
    version: str
    endpoints: Dict[str, str]
