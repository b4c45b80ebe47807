# workflow.py
# Two-stage API discovery workflow.
#
# Control flow:
#   user text → seed log → API MASTER (web search, writes API docs)
#   → append items → docs become side-channel context
#   → Agent (calls the API through the gated gateway) → append items
#   → answer returned to the caller
#
# The workflow owns ordering, history and failure reporting. All model and
# tool behaviour sits behind the Runner. All terminal output goes through
# display.py.

import threading
import uuid
from enum import Enum

from api_scout import display
from api_scout.conversation import ConversationLog
from api_scout.errors import (
    InvalidInput,
    MissingOutput,
    RunIncomplete,
    RunnerTransportFailure,
)
from api_scout.models import (
    AgentDefinition,
    DiscoveryContext,
    RunResult,
    WorkflowInput,
    WorkflowOutput,
)
from api_scout.runner import Runner

DISCOVERY = "discovery"
CONSUMPTION = "consumption"


class WorkflowState(str, Enum):
    START = "start"
    DISCOVERY_RUNNING = "discovery_running"
    DISCOVERY_DONE = "discovery_done"
    CONSUMPTION_RUNNING = "consumption_running"
    CONSUMPTION_DONE = "consumption_done"
    FAILED = "failed"


_TRANSITIONS: dict[WorkflowState, set[WorkflowState]] = {
    WorkflowState.START: {WorkflowState.DISCOVERY_RUNNING},
    WorkflowState.DISCOVERY_RUNNING: {WorkflowState.DISCOVERY_DONE, WorkflowState.FAILED},
    WorkflowState.DISCOVERY_DONE: {WorkflowState.CONSUMPTION_RUNNING},
    WorkflowState.CONSUMPTION_RUNNING: {WorkflowState.CONSUMPTION_DONE, WorkflowState.FAILED},
    WorkflowState.CONSUMPTION_DONE: set(),
    WorkflowState.FAILED: set(),
}

_RUNNING_STAGE = {
    WorkflowState.DISCOVERY_RUNNING: DISCOVERY,
    WorkflowState.CONSUMPTION_RUNNING: CONSUMPTION,
}


class WorkflowRun:
    """State for a single invocation. Never shared between invocations."""

    def __init__(self, request: str) -> None:
        self.id = uuid.uuid4().hex
        self.request = request
        self.log = ConversationLog.seed(request)
        self.state = WorkflowState.START
        self.context: DiscoveryContext | None = None
        self.output_text: str | None = None
        self.error: BaseException | None = None
        self.failed_stage: str | None = None

    @property
    def stage(self) -> str | None:
        return _RUNNING_STAGE.get(self.state)

    def advance(self, target: WorkflowState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal workflow transition {self.state.value} → {target.value}.")
        self.state = target
        display.state_changed(self.id, target)

    def fail(self, error: BaseException) -> None:
        self.failed_stage = self.stage
        self.error = error
        self.advance(WorkflowState.FAILED)


class Workflow:
    """
    Runs API MASTER, then Agent, over one shared conversation log.

    Example:
        workflow = Workflow(runner, build_api_master(s), build_api_agent(s))
        answer = workflow.run("What's the weather in Paris?").output_text
    """

    def __init__(
        self,
        runner: Runner,
        discovery_agent: AgentDefinition,
        consumption_agent: AgentDefinition,
    ) -> None:
        self._runner = runner
        self._discovery_agent = discovery_agent
        self._consumption_agent = consumption_agent

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def start(self, workflow: WorkflowInput | str) -> WorkflowRun:
        """Validate the request and seed a fresh log. No service call happens here."""
        text = workflow.input_as_text if isinstance(workflow, WorkflowInput) else workflow
        if not isinstance(text, str):
            raise InvalidInput(f"input_as_text must be a string, got {type(text).__name__}.")
        if not text.strip():
            raise InvalidInput("input_as_text is empty.")

        run = WorkflowRun(text)
        display.prompt_received(run.id, text)
        return run

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _stage(
        self,
        run: WorkflowRun,
        agent: AgentDefinition,
        context: DiscoveryContext | None,
        cancel_event: threading.Event | None,
    ) -> str:
        """
        One runner call over the full log. New items are appended before the
        output check so a failed run still leaves its history on the run.
        """
        stage = run.stage
        display.stage_start(stage, agent.name, len(run.log))
        result: RunResult = self._runner.run(
            agent, run.log.snapshot(), context=context, cancel_event=cancel_event
        )
        run.log.append(result.new_items)
        display.stage_items(stage, len(result.new_items), len(run.log))

        try:
            return result.require_output()
        except RunIncomplete as exc:
            raise MissingOutput(stage, f"status={result.status or 'unknown'}") from exc

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def execute(
        self, run: WorkflowRun, cancel_event: threading.Event | None = None
    ) -> WorkflowOutput:
        """Drive both stages. Either both produce output or the whole run fails."""
        try:
            # ── Stage 1: discover and document an API ─────────────────
            run.advance(WorkflowState.DISCOVERY_RUNNING)
            discovery_text = self._stage(run, self._discovery_agent, None, cancel_event)
            run.context = DiscoveryContext(input_output_text=discovery_text)
            run.advance(WorkflowState.DISCOVERY_DONE)
            display.discovery_result(discovery_text)

            # ── Stage 2: answer the user with the documented API ──────
            run.advance(WorkflowState.CONSUMPTION_RUNNING)
            answer = self._stage(run, self._consumption_agent, run.context, cancel_event)
            run.output_text = answer
            run.advance(WorkflowState.CONSUMPTION_DONE)
        except BaseException as exc:
            # Only a running stage can fail; an illegal transition leaves the run as it was.
            stage = run.stage
            if stage is None:
                raise
            if isinstance(exc, RunnerTransportFailure) and exc.stage is None:
                exc.stage = stage
            run.fail(exc)
            display.halt(stage, str(exc) or type(exc).__name__)
            raise

        display.final_result(answer)
        return WorkflowOutput(output_text=answer)

    def run(
        self, workflow: WorkflowInput | str, cancel_event: threading.Event | None = None
    ) -> WorkflowOutput:
        return self.execute(self.start(workflow), cancel_event=cancel_event)
