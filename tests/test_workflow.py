import pytest

from api_scout.agents import CONSUMER_INSTRUCTIONS_PREFIX
from api_scout.errors import (
    InvalidInput,
    MissingOutput,
    RunIncomplete,
    RunnerTransportFailure,
    WorkflowCancelled,
)
from api_scout.models import DiscoveryContext, MessageItem, RunResult, WorkflowInput
from api_scout.workflow import Workflow, WorkflowRun, WorkflowState

from conftest import StubRunner, assistant_item

PARIS = "What's the weather in Paris?"
PARIS_DOCS = "Use api.weather.example/v1?city=Paris"
PARIS_ANSWER = "It is 18°C in Paris."


def _paris_runner():
    item_a = assistant_item(PARIS_DOCS, "msg_a")
    item_b = assistant_item(PARIS_ANSWER, "msg_b")
    runner = StubRunner(
        [
            RunResult(new_items=[item_a], final_output=PARIS_DOCS, status="completed"),
            RunResult(new_items=[item_b], final_output=PARIS_ANSWER, status="completed"),
        ]
    )
    return runner, item_a, item_b


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------


def test_paris_end_to_end(api_master, api_agent):
    runner, item_a, item_b = _paris_runner()
    workflow = Workflow(runner, api_master, api_agent)

    run = workflow.start(PARIS)
    output = workflow.execute(run)

    assert output.output_text == PARIS_ANSWER
    assert run.state is WorkflowState.CONSUMPTION_DONE
    assert run.output_text == PARIS_ANSWER
    assert run.log.snapshot() == [MessageItem.user_text(PARIS), item_a, item_b]

    discovery_call, consumption_call = runner.calls
    assert discovery_call.definition is api_master
    assert discovery_call.items == [MessageItem.user_text(PARIS)]
    assert discovery_call.context is None
    assert consumption_call.definition is api_agent
    assert consumption_call.items == [MessageItem.user_text(PARIS), item_a]
    assert PARIS_DOCS in api_agent.resolve_instructions(consumption_call.context)


def test_run_accepts_workflow_input(api_master, api_agent):
    runner, _, _ = _paris_runner()
    output = Workflow(runner, api_master, api_agent).run(WorkflowInput(input_as_text=PARIS))
    assert output.output_text == PARIS_ANSWER


def test_stage_one_items_are_appended_in_order(api_master, api_agent):
    items = [assistant_item(f"step {i}", f"msg_{i}") for i in range(4)]
    runner = StubRunner(
        [
            RunResult(new_items=items, final_output="docs"),
            RunResult(new_items=[], final_output="answer"),
        ]
    )
    Workflow(runner, api_master, api_agent).run("question")

    assert runner.calls[1].items == [MessageItem.user_text("question"), *items]


def test_side_channel_context_is_exact_discovery_output(api_master, api_agent):
    docs = "  GET https://example.org/api?q=x\n\nReturns JSON.  \n"
    runner = StubRunner(
        [
            RunResult(new_items=[], final_output=docs),
            RunResult(new_items=[], final_output="answer"),
        ]
    )
    Workflow(runner, api_master, api_agent).run("question")

    context = runner.calls[1].context
    assert context == DiscoveryContext(input_output_text=docs)
    assert api_agent.resolve_instructions(context) == f"{CONSUMER_INSTRUCTIONS_PREFIX} {docs}"


def test_repeated_runs_are_deterministic(api_master, api_agent):
    lengths, contexts = [], []
    for _ in range(2):
        runner, _, _ = _paris_runner()
        workflow = Workflow(runner, api_master, api_agent)
        run = workflow.start(PARIS)
        workflow.execute(run)
        lengths.append(len(run.log))
        contexts.append(run.context)

    assert lengths[0] == lengths[1] == 3
    assert contexts[0] == contexts[1]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("text", ["", "   ", "\n\t "])
def test_blank_input_rejected_before_any_runner_call(api_master, api_agent, text):
    runner = StubRunner([])
    workflow = Workflow(runner, api_master, api_agent)

    with pytest.raises(InvalidInput):
        workflow.run(text)
    assert runner.calls == []


def test_non_text_input_rejected(api_master, api_agent):
    runner = StubRunner([])
    with pytest.raises(InvalidInput, match="must be a string"):
        Workflow(runner, api_master, api_agent).run(42)
    assert runner.calls == []


def test_missing_discovery_output_fails_discovery_stage(api_master, api_agent):
    item = assistant_item("", "msg_empty")
    runner = StubRunner([RunResult(new_items=[item], final_output=None, status="incomplete")])
    workflow = Workflow(runner, api_master, api_agent)
    run = workflow.start("question")

    with pytest.raises(MissingOutput, match="discovery") as excinfo:
        workflow.execute(run)

    assert excinfo.value.stage == "discovery"
    assert run.state is WorkflowState.FAILED
    assert run.error is excinfo.value
    assert len(runner.calls) == 1
    assert run.log.snapshot() == [MessageItem.user_text("question"), item]


def test_missing_consumption_output_fails_consumption_stage(api_master, api_agent):
    runner = StubRunner(
        [
            RunResult(new_items=[], final_output="docs"),
            RunResult(new_items=[], final_output="", status="completed"),
        ]
    )
    workflow = Workflow(runner, api_master, api_agent)
    run = workflow.start("question")

    with pytest.raises(MissingOutput) as excinfo:
        workflow.execute(run)

    assert excinfo.value.stage == "consumption"
    assert run.state is WorkflowState.FAILED
    assert run.context == DiscoveryContext(input_output_text="docs")
    assert run.output_text is None


class _FailingRunner:
    def __init__(self, error, fail_on_call=1):
        self._error = error
        self._fail_on_call = fail_on_call
        self.calls = 0

    def run(self, definition, items, context=None, cancel_event=None):
        self.calls += 1
        if self.calls == self._fail_on_call:
            raise self._error
        return RunResult(new_items=[], final_output="docs")


def test_transport_failure_is_tagged_with_stage(api_master, api_agent):
    runner = _FailingRunner(RunnerTransportFailure("quota exceeded"), fail_on_call=2)
    workflow = Workflow(runner, api_master, api_agent)
    run = workflow.start("question")

    with pytest.raises(RunnerTransportFailure) as excinfo:
        workflow.execute(run)

    assert excinfo.value.stage == "consumption"
    assert str(excinfo.value) == "[consumption] quota exceeded"
    assert run.state is WorkflowState.FAILED


def test_cancellation_fails_the_run(api_master, api_agent):
    runner = _FailingRunner(WorkflowCancelled("cancelled"), fail_on_call=1)
    workflow = Workflow(runner, api_master, api_agent)
    run = workflow.start("question")

    with pytest.raises(WorkflowCancelled):
        workflow.execute(run)
    assert run.state is WorkflowState.FAILED


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


def test_illegal_transition_raises():
    run = WorkflowRun("question")
    with pytest.raises(RuntimeError, match="Illegal workflow transition"):
        run.advance(WorkflowState.CONSUMPTION_RUNNING)


def test_finished_run_cannot_be_executed_again(api_master, api_agent):
    runner, _, _ = _paris_runner()
    workflow = Workflow(runner, api_master, api_agent)
    run = workflow.start(PARIS)
    workflow.execute(run)

    with pytest.raises(RuntimeError):
        workflow.execute(run)
    assert run.state is WorkflowState.CONSUMPTION_DONE


def test_runs_do_not_share_state(api_master, api_agent):
    workflow = Workflow(StubRunner([]), api_master, api_agent)
    first = workflow.start("one")
    second = workflow.start("two")

    assert first.id != second.id
    assert first.log is not second.log
    assert [len(first.log), len(second.log)] == [1, 1]


# ---------------------------------------------------------------------------
# Failures outside the workflow error taxonomy
# ---------------------------------------------------------------------------


def test_foreign_runner_error_still_fails_the_run(api_master, api_agent):
    error = ConnectionError("socket closed")
    runner = _FailingRunner(error, fail_on_call=1)
    workflow = Workflow(runner, api_master, api_agent)
    run = workflow.start("question")

    with pytest.raises(ConnectionError, match="socket closed"):
        workflow.execute(run)

    assert run.state is WorkflowState.FAILED
    assert run.error is error
    assert run.failed_stage == "discovery"


def test_interrupt_during_consumption_fails_the_run(api_master, api_agent):
    runner = _FailingRunner(KeyboardInterrupt(), fail_on_call=2)
    workflow = Workflow(runner, api_master, api_agent)
    run = workflow.start("question")

    with pytest.raises(KeyboardInterrupt):
        workflow.execute(run)

    assert run.state is WorkflowState.FAILED
    assert run.failed_stage == "consumption"


def test_missing_output_chains_runner_level_incompleteness(api_master, api_agent):
    runner = StubRunner([RunResult(new_items=[], final_output=None, status="incomplete")])

    with pytest.raises(MissingOutput) as excinfo:
        Workflow(runner, api_master, api_agent).run("question")

    assert isinstance(excinfo.value.__cause__, RunIncomplete)
    assert "incomplete" in str(excinfo.value)
