# ABOUTME: MCP server for per-tab replay history captured through mitmproxy
# ABOUTME: Exposes tools to run the proxy and export captured tab history

import asyncio
import json
import logging
import time
from threading import Thread
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .addon import RepeaterHistoryAddon
from .clipboard import copy_to_clipboard
from .config import SOURCE_PROXY, SOURCES, get_capture_source, setup_logging
from .dispatcher import ActionDispatcher, CopyOutcome, notice_for
from .formatter import format_history
from .storage import TabHistoryStore

log = logging.getLogger(__name__)


def _log_notice(title: str, message: str) -> None:
    log.info(f"[{title}] {message}")


class ProxySession:
    """The store, dispatcher and proxy thread for one server lifetime."""

    def __init__(self):
        self.store = TabHistoryStore()
        self.dispatcher = ActionDispatcher(self.store, copy_to_clipboard, _log_notice)
        # Headless: nothing replays flows here, so capture proxied traffic by default
        self.source = get_capture_source(default=SOURCE_PROXY)
        self.thread: Optional[Thread] = None
        self.master = None
        self.loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def make_addon(self) -> RepeaterHistoryAddon:
        """Build the capture addon wired to this session's store and dispatcher."""
        return RepeaterHistoryAddon(self.store, source=self.source, dispatcher=self.dispatcher)

    def run_proxy(self, listen_host: str, listen_port: int) -> None:
        """Run mitmproxy in the current (background) thread."""
        from mitmproxy import options
        from mitmproxy.tools.dump import DumpMaster

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self.loop = loop

        opts = options.Options(
            listen_host=listen_host,
            listen_port=listen_port,
        )

        master = DumpMaster(opts, loop=loop, with_termlog=False, with_dumper=False)
        self.master = master
        master.addons.add(self.make_addon())

        try:
            loop.run_until_complete(master.run())
        except Exception as e:
            log.exception(f"Proxy stopped with an error: {e}")
        finally:
            self.loop = None
            self.master = None


_session = ProxySession()

# Create the MCP server
mcp = FastMCP("repeater-history")


def _outcome_json(outcome: CopyOutcome) -> str:
    return json.dumps({
        "status": outcome.status.value,
        "tab": outcome.tab,
        "entries": outcome.count,
        "message": notice_for(outcome),
    })


@mcp.tool()
def start_proxy(
    port: int = 8080,
    host: str = "0.0.0.0",
    source: Optional[str] = None,
) -> str:
    """
    Start the mitmproxy interception proxy.

    Captured history is kept across restarts of the proxy for the lifetime
    of this server.

    Args:
        port: Port to listen on (default 8080)
        host: Host to bind to (default 0.0.0.0)
        source: Traffic to capture: "proxy" for traffic sent through the
            proxy, "replay" for flows replayed in mitmproxy. Defaults to
            REPEATER_HISTORY_SOURCE, or "proxy" when unset, since this
            server runs mitmproxy headless and never replays flows itself

    Returns:
        Status message indicating success or failure
    """
    if _session.is_running:
        return f"Proxy is already running on port {port}"

    if source is not None:
        if source not in SOURCES:
            return f"Unknown source '{source}' - expected one of {', '.join(SOURCES)}"
        _session.source = source

    _session.thread = Thread(
        target=_session.run_proxy,
        args=(host, port),
        daemon=True,
    )
    _session.thread.start()

    # Give it a moment to start
    time.sleep(1)

    if _session.is_running:
        log.info(f"Proxy started on {host}:{port} capturing {_session.source} traffic")
        return f"Proxy started on {host}:{port} (capturing '{_session.source}' traffic)"
    else:
        return "Failed to start proxy - check if port is already in use"


@mcp.tool()
def stop_proxy() -> str:
    """
    Stop the running mitmproxy proxy.

    Returns:
        Status message
    """
    if not _session.is_running:
        return "Proxy is not running"

    if _session.master and _session.loop:
        # Schedule shutdown on the proxy's event loop
        _session.loop.call_soon_threadsafe(_session.master.shutdown)

    # Wait for thread to finish
    _session.thread.join(timeout=5)

    if _session.thread.is_alive():
        return "Proxy is taking too long to stop - it may still be shutting down"

    _session.thread = None
    return "Proxy stopped"


@mcp.tool()
def get_proxy_status() -> str:
    """
    Get the current status of the proxy.

    Returns:
        JSON string with status information
    """
    return json.dumps({
        "running": _session.is_running,
        "source": _session.source,
        "tabs": len(_session.store.keys()),
        "captured_requests": len(_session.store),
    })


@mcp.tool()
def list_tabs() -> str:
    """
    List the history tabs captured so far.

    Each tab groups all captured exchanges sent to one host:port.

    Returns:
        JSON array of tabs with their entry counts
    """
    tabs = [
        {"tab": key, "entries": _session.store.count(key)}
        for key in sorted(_session.store.keys())
    ]
    return json.dumps(tabs, indent=2)


@mcp.tool()
def get_tab_history(tab: str) -> str:
    """
    Get the formatted history report for one tab.

    Args:
        tab: Tab key as returned by list_tabs, e.g. "example.com:443"

    Returns:
        The plain-text history report, or a JSON error
    """
    records = _session.store.snapshot(tab)
    if not records:
        return json.dumps({
            "error": f"No captured history for {tab}",
            "hint": "Only exchanges captured after the proxy started are recorded",
        })
    return format_history(records, tab)


@mcp.tool()
def copy_tab_history(tab: str) -> str:
    """
    Copy one tab's history report to the system clipboard.

    Args:
        tab: Tab key as returned by list_tabs, e.g. "example.com:443"

    Returns:
        JSON object with the outcome and the message shown to the user
    """
    return _outcome_json(_session.dispatcher.copy_history_for_tab(tab))


@mcp.tool()
def copy_all_history() -> str:
    """
    Copy the history of every tab, in capture order, to the system clipboard.

    Returns:
        JSON object with the outcome and the message shown to the user
    """
    return _outcome_json(_session.dispatcher.copy_all_history())


def main():
    """Run the MCP server."""
    setup_logging()
    mcp.run()


if __name__ == "__main__":
    main()
