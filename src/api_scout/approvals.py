# approvals.py
# Decisions for gateway calls that require approval.
#
# A handler is any callable taking an ApprovalRequest and returning an
# ApprovalStatus. PENDING means "ask me again later": the runner keeps
# polling until the handler settles on APPROVED or DENIED, or the caller
# cancels. Pending is a normal state, never an error.

import threading
from typing import Callable

from api_scout import display
from api_scout.models import ApprovalRequest, ApprovalStatus

ApprovalHandler = Callable[[ApprovalRequest], ApprovalStatus]


def approve_all(request: ApprovalRequest) -> ApprovalStatus:
    return ApprovalStatus.APPROVED


def deny_all(request: ApprovalRequest) -> ApprovalStatus:
    return ApprovalStatus.DENIED


def console_approval(request: ApprovalRequest) -> ApprovalStatus:
    """Ask the operator on the terminal. Blocks until they answer."""
    if display.ask_approval(request):
        return ApprovalStatus.APPROVED
    return ApprovalStatus.DENIED


class ApprovalBoard:
    """
    Out-of-band approvals: some other thread (a web hook, an admin UI)
    records decisions, the runner polls.

    Unknown requests are PENDING until decide() is called for them. A settled
    decision is handed out once, then both entries are dropped.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._decisions: dict[str, ApprovalStatus] = {}
        self._seen: dict[str, ApprovalRequest] = {}

    def __call__(self, request: ApprovalRequest) -> ApprovalStatus:
        with self._lock:
            status = self._decisions.pop(request.id, None)
            if status is None:
                self._seen.setdefault(request.id, request)
                return ApprovalStatus.PENDING
            self._seen.pop(request.id, None)
            return status

    def decide(self, request_id: str, approved: bool) -> None:
        status = ApprovalStatus.APPROVED if approved else ApprovalStatus.DENIED
        with self._lock:
            self._decisions[request_id] = status

    def waiting(self) -> list[ApprovalRequest]:
        """Requests the runner has asked about that have no decision yet."""
        with self._lock:
            return [
                request
                for request_id, request in self._seen.items()
                if request_id not in self._decisions
            ]


HANDLERS: dict[str, ApprovalHandler] = {
    "always": approve_all,
    "never": deny_all,
    "ask": console_approval,
}
