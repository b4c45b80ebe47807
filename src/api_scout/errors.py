# errors.py
# Failure taxonomy for the two-stage workflow.
#
# Everything a caller can catch derives from WorkflowError. A pending tool
# approval is NOT an error and has no class here (see approvals.py).


class WorkflowError(Exception):
    """Base class for all workflow failures."""


class InvalidInput(WorkflowError):
    """Raised before any runner call when the user request is empty or not text."""


class RunIncomplete(WorkflowError):
    """Raised when an agent run finished without a final output."""


class MissingOutput(RunIncomplete):
    """A workflow stage produced no final output. Always fatal for the workflow."""

    def __init__(self, stage: str, detail: str = "") -> None:
        self.stage = stage
        message = f"The {stage} stage finished without a final output."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class RunnerTransportFailure(WorkflowError):
    """The call to the agent execution service itself failed (network, auth, quota)."""

    def __init__(self, message: str, stage: str | None = None) -> None:
        self.stage = stage
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.stage:
            return f"[{self.stage}] {base}"
        return base


class WorkflowCancelled(WorkflowError):
    """Raised when the caller cancels a run that is still waiting on the service."""
