from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Request

from .services.extraction import MeetingNotesProcessor


@dataclass
class State:
    """Long-lived handles shared by all requests, attached to FastAPI's app.state.

    Nothing here changes after start-up; requests do not share mutable state.
    """

    client: Any
    processor: MeetingNotesProcessor


def get_state(request: Request) -> State:  # FastAPI dependency helper
    return request.app.state.state


def get_processor(request: Request) -> MeetingNotesProcessor:
    return get_state(request).processor
