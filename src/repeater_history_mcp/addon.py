# ABOUTME: Mitmproxy addon that records replayed HTTP exchanges per tab
# ABOUTME: Also exposes the copy actions as mitmproxy commands

import logging
import time
import uuid
from typing import Optional

from mitmproxy import command, ctx, exceptions, flow, http
from mitmproxy.log import ALERT
from mitmproxy.net.http.http1 import assemble_request_head, assemble_response_head

from .clipboard import copy_to_clipboard
from .config import SOURCE_PROXY, SOURCE_REPLAY, SOURCES, get_capture_source
from .dispatcher import ActionDispatcher, CopyOutcome
from .keys import derive_key
from .models import EventRecord, RequestData, ResponseData
from .storage import TabHistoryStore

log = logging.getLogger(__name__)


def alert(title: str, message: str) -> None:
    """Show a notice in mitmproxy's event log."""
    log.log(ALERT, f"[{title}] {message}")


def source_of(f: flow.Flow) -> str:
    """Tag a flow with the tool it came from."""
    if f.is_replay == "request":
        return SOURCE_REPLAY
    return SOURCE_PROXY


def _decode_content(content: Optional[bytes]) -> Optional[str]:
    """Decode content bytes to string, handling binary data."""
    if content is None:
        return None

    try:
        return content.decode('utf-8')
    except UnicodeDecodeError:
        return f"[binary data: {len(content)} bytes]"


def _header_pairs(headers: http.Headers) -> tuple:
    """All header fields in order, repeated names included."""
    return tuple(
        (name.decode('utf-8', errors='replace'), value.decode('utf-8', errors='replace'))
        for name, value in headers.fields
    )


def _raw_text(head: bytes, content: Optional[bytes]) -> str:
    body = _decode_content(content) or ""
    return head.decode('utf-8', errors='replace') + body


def request_data(request: http.Request) -> RequestData:
    """Snapshot a mitmproxy request."""
    return RequestData(
        method=request.method,
        url=request.pretty_url,
        host=request.host,
        port=request.port,
        headers=_header_pairs(request.headers),
        body=_decode_content(request.raw_content),
        raw=_raw_text(assemble_request_head(request), request.raw_content),
    )


def response_data(response: http.Response) -> ResponseData:
    """Snapshot a mitmproxy response."""
    return ResponseData(
        status_code=response.status_code,
        reason=response.reason,
        headers=_header_pairs(response.headers),
        body=_decode_content(response.raw_content),
        raw=_raw_text(assemble_response_head(response), response.raw_content),
    )


def record_from_flow(f: Optional[flow.Flow]) -> Optional[EventRecord]:
    """Build a record from whatever a flow currently holds."""
    if not isinstance(f, http.HTTPFlow):
        return None
    return EventRecord(
        request=request_data(f.request) if f.request is not None else None,
        response=response_data(f.response) if f.response is not None else None,
        id=f.id,
        timestamp=time.time(),
    )


class RepeaterHistoryAddon:
    """Mitmproxy addon that captures replayed traffic into per-tab history."""

    def __init__(
        self,
        store: TabHistoryStore,
        source: Optional[str] = None,
        dispatcher: Optional[ActionDispatcher] = None,
    ):
        self.store = store
        self.source = source or get_capture_source()
        self.dispatcher = dispatcher or ActionDispatcher(store, copy_to_clipboard, alert)

    def load(self, loader) -> None:
        loader.add_option(
            name="history_source",
            typespec=str,
            default=self.source,
            help=f"Traffic source to capture into tab history ({SOURCE_REPLAY} or {SOURCE_PROXY})",
        )

    def configure(self, updated) -> None:
        if "history_source" in updated:
            if ctx.options.history_source not in SOURCES:
                raise exceptions.OptionsError(
                    f"history_source must be one of: {', '.join(SOURCES)}"
                )
            self.source = ctx.options.history_source

    def response(self, f: http.HTTPFlow) -> None:
        """Called when a response is received."""
        if f.response is None:
            return
        self.on_exchange_complete(f.request, f.response, source_of(f), flow_id=f.id)

    def on_exchange_complete(
        self,
        request: http.Request,
        response: http.Response,
        source_tag: str,
        flow_id: Optional[str] = None,
    ) -> bool:
        """
        Record a completed exchange if it came from the captured source.

        Never raises and never touches the request or response, so the
        flow continues exactly as it would without this addon.

        Returns:
            True if a record was appended
        """
        if source_tag != self.source:
            return False

        try:
            record = EventRecord(
                request=request_data(request),
                response=response_data(response),
                id=flow_id or str(uuid.uuid4()),
                timestamp=time.time(),
            )
            self.store.append(derive_key(request), record)
        except Exception as e:
            log.error(f"Failed to capture {source_tag} exchange: {e}")
            return False
        return True

    @command.command("history.copy.current")
    def copy_current(self, f: flow.Flow) -> None:
        """Copy the focused request/response to the clipboard."""
        self._run(lambda: self.dispatcher.copy_current(record_from_flow(f)))

    @command.command("history.copy.tab")
    def copy_tab(self, f: flow.Flow) -> None:
        """Copy the captured history for the focused flow's host:port."""
        request = f.request if isinstance(f, http.HTTPFlow) else None
        self._run(lambda: self.dispatcher.copy_tab_history(request))

    @command.command("history.copy.all")
    def copy_all(self) -> None:
        """Copy all captured history to the clipboard."""
        self._run(self.dispatcher.copy_all_history)

    def _run(self, action) -> Optional[CopyOutcome]:
        # record_from_flow can fail before the dispatcher is reached
        try:
            return action()
        except Exception as e:
            log.exception(f"Copy action failed: {e}")
            alert(self.dispatcher.title, f"Error: {e}")
            return None
