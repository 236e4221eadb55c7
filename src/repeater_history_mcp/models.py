# ABOUTME: Immutable records for captured replay traffic
# ABOUTME: One EventRecord pairs an outbound request with its response

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RequestData:
    """The request half of a captured exchange."""
    method: str
    url: str
    host: str
    port: int
    headers: tuple = ()  # (name, value) pairs, repeats kept
    body: Optional[str] = None
    raw: str = ""  # start line, headers, blank line, body


@dataclass(frozen=True)
class ResponseData:
    """The response half of a captured exchange."""
    status_code: int
    reason: str = ""
    headers: tuple = ()  # (name, value) pairs, repeats kept
    body: Optional[str] = None
    raw: str = ""


@dataclass(frozen=True)
class EventRecord:
    """A captured request/response pair. Either half may be missing."""
    request: Optional[RequestData]
    response: Optional[ResponseData]
    id: str = ""
    timestamp: float = 0.0
