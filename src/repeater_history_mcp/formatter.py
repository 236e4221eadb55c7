# ABOUTME: Renders captured history as a plain-text report
# ABOUTME: Output layout is fixed so pasted reports stay comparable

from typing import Optional, Sequence

from .models import EventRecord

SEPARATOR = "=" * 80
SUB_SEPARATOR = "-" * 80

NO_REQUEST = "[No request data]"
NO_RESPONSE = "[No response data]"


def _request_text(record: EventRecord) -> str:
    if record.request is None:
        return NO_REQUEST
    return record.request.raw


def _response_text(record: EventRecord) -> str:
    if record.response is None:
        return NO_RESPONSE
    return record.response.raw


def format_history(
    records: Sequence[EventRecord],
    group_label: Optional[str] = None,
) -> str:
    """
    Format a sequence of records as a numbered history report.

    Args:
        records: Records in capture order
        group_label: Tab key shown in the header. When omitted the report
            covers all tabs and the "Tab:" line is left out.

    Returns:
        The report text
    """
    parts = []
    if group_label is None:
        parts.append("BURP REPEATER HISTORY\n")
        parts.append(f"{SEPARATOR}\n")
    else:
        parts.append("BURP REPEATER TAB HISTORY\n")
        parts.append(f"{SEPARATOR}\n")
        parts.append(f"Tab: {group_label}\n")
    parts.append(f"Total Entries: {len(records)}\n")
    parts.append(f"{SEPARATOR}\n\n")

    for number, record in enumerate(records, start=1):
        parts.append(f"REQUEST #{number}\n")
        parts.append(f"{SEPARATOR}\n")
        parts.append(f"{_request_text(record)}\n")
        parts.append(f"\n{SUB_SEPARATOR}\n")
        parts.append(f"RESPONSE #{number}\n")
        parts.append(f"{SUB_SEPARATOR}\n")
        parts.append(f"{_response_text(record)}\n")
        parts.append(f"\n{SEPARATOR}\n\n")

    return "".join(parts)


def format_single(record: EventRecord, label: str) -> str:
    """Format one record, e.g. the flow currently in focus."""
    return (
        f"{label} REQUEST/RESPONSE\n"
        f"{SEPARATOR}\n\n"
        "REQUEST\n"
        f"{SEPARATOR}\n"
        f"{_request_text(record)}\n"
        f"\n{SUB_SEPARATOR}\n"
        "RESPONSE\n"
        f"{SUB_SEPARATOR}\n"
        f"{_response_text(record)}\n"
        f"\n{SEPARATOR}\n"
    )
