# ABOUTME: Turns user copy actions into clipboard writes and notices
# ABOUTME: Every action returns a CopyOutcome; no exception leaves this module

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from .config import NOTICE_TITLE
from .formatter import format_history, format_single
from .keys import derive_key
from .models import EventRecord
from .storage import TabHistoryStore

log = logging.getLogger(__name__)


class ActionKind(Enum):
    CURRENT = "current"
    TAB = "tab"
    ALL = "all"


class OutcomeStatus(Enum):
    COPIED = "copied"
    NO_CONTEXT = "no_context"
    EMPTY_HISTORY = "empty_history"
    SINK_ERROR = "sink_error"
    ERROR = "error"


@dataclass(frozen=True)
class CopyOutcome:
    """Result of one copy action."""
    status: OutcomeStatus
    action: ActionKind
    tab: Optional[str] = None
    count: int = 0
    text: Optional[str] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.COPIED


_CAPTURE_HINT = (
    "This extension captures requests sent AFTER it was loaded.\n"
    "Use 'Copy Current Request/Response' to copy what's visible now."
)


def notice_for(outcome: CopyOutcome) -> str:
    """Build the message shown to the user for an outcome."""
    status = outcome.status

    if status is OutcomeStatus.NO_CONTEXT:
        if outcome.action is ActionKind.CURRENT:
            return "No request data available"
        return "No request/response data available"

    if status is OutcomeStatus.EMPTY_HISTORY:
        if outcome.action is ActionKind.TAB:
            return f"No captured history for this tab ({outcome.tab}).\n\n{_CAPTURE_HINT}"
        return f"No captured history available.\n\n{_CAPTURE_HINT}"

    if status is OutcomeStatus.SINK_ERROR:
        return f"Error copying to clipboard: {outcome.detail}"

    if status is OutcomeStatus.ERROR:
        if outcome.action is ActionKind.CURRENT:
            return f"Error: {outcome.detail}"
        return f"Error copying history: {outcome.detail}"

    if outcome.action is ActionKind.CURRENT:
        return "Copied current request/response to clipboard"
    if outcome.action is ActionKind.TAB:
        return f"Copied {outcome.count} captured history entries for {outcome.tab} to clipboard"
    return f"Copied {outcome.count} captured history entries to clipboard"


class ActionDispatcher:
    """Handles the copy actions a user can trigger."""

    def __init__(
        self,
        store: TabHistoryStore,
        clipboard: Callable[[str], None],
        notify: Callable[[str, str], None],
        title: str = NOTICE_TITLE,
    ):
        self.store = store
        self.clipboard = clipboard
        self.notify = notify
        self.title = title

    def copy_current(self, record: Optional[EventRecord]) -> CopyOutcome:
        """Copy the request/response currently in focus. Does not touch the store."""
        def plan() -> CopyOutcome:
            if record is None or record.request is None:
                return CopyOutcome(OutcomeStatus.NO_CONTEXT, ActionKind.CURRENT)
            return CopyOutcome(
                OutcomeStatus.COPIED,
                ActionKind.CURRENT,
                count=1,
                text=format_single(record, "CURRENT"),
            )

        return self._dispatch(ActionKind.CURRENT, None, plan)

    def copy_tab_history(self, request) -> CopyOutcome:
        """Copy the captured history of the tab the given request belongs to."""
        if request is None:
            return self._dispatch(
                ActionKind.TAB,
                None,
                lambda: CopyOutcome(OutcomeStatus.NO_CONTEXT, ActionKind.TAB),
            )
        return self._dispatch(ActionKind.TAB, None, lambda: self._plan_tab(derive_key(request)))

    def copy_history_for_tab(self, tab: str) -> CopyOutcome:
        """Copy the captured history of a tab given its key."""
        return self._dispatch(ActionKind.TAB, tab, lambda: self._plan_tab(tab))

    def copy_all_history(self) -> CopyOutcome:
        """Copy everything captured, across all tabs, in capture order."""
        def plan() -> CopyOutcome:
            records = self.store.snapshot_all()
            if not records:
                return CopyOutcome(OutcomeStatus.EMPTY_HISTORY, ActionKind.ALL)
            return CopyOutcome(
                OutcomeStatus.COPIED,
                ActionKind.ALL,
                count=len(records),
                text=format_history(records),
            )

        return self._dispatch(ActionKind.ALL, None, plan)

    def _plan_tab(self, tab: str) -> CopyOutcome:
        records = self.store.snapshot(tab)
        if not records:
            return CopyOutcome(OutcomeStatus.EMPTY_HISTORY, ActionKind.TAB, tab=tab)
        return CopyOutcome(
            OutcomeStatus.COPIED,
            ActionKind.TAB,
            tab=tab,
            count=len(records),
            text=format_history(records, tab),
        )

    def _dispatch(
        self,
        action: ActionKind,
        tab: Optional[str],
        plan: Callable[[], CopyOutcome],
    ) -> CopyOutcome:
        try:
            outcome = plan()
            if outcome.ok:
                outcome = self._write(outcome)
            elif outcome.status is OutcomeStatus.EMPTY_HISTORY:
                log.info(f"No captured history for {outcome.tab or 'any tab'}")
        except Exception as e:
            log.exception(f"Error during {action.value} copy: {e}")
            outcome = CopyOutcome(OutcomeStatus.ERROR, action, tab=tab, detail=str(e))

        self._announce(outcome)
        return outcome

    def _write(self, outcome: CopyOutcome) -> CopyOutcome:
        try:
            self.clipboard(outcome.text)
        except Exception as e:
            log.error(f"Clipboard write failed for {outcome.action.value} copy: {e}")
            return replace(outcome, status=OutcomeStatus.SINK_ERROR, detail=str(e))

        if outcome.action is ActionKind.CURRENT:
            log.info("Successfully copied current request/response to clipboard")
        else:
            log.info(f"Successfully copied {outcome.count} captured history entries to clipboard")
        return outcome

    def _announce(self, outcome: CopyOutcome) -> None:
        try:
            self.notify(self.title, notice_for(outcome))
        except Exception as e:
            log.exception(f"Failed to show notice: {e}")
