from unittest.mock import MagicMock, patch

import pytest

from api_scout import run
from api_scout.config import Settings
from api_scout.errors import InvalidInput, MissingOutput
from api_scout.models import WorkflowOutput
from api_scout.runner import OpenAIRunner


@patch("api_scout.run.Settings")
@patch("api_scout.run.build_workflow")
def test_main_success(mock_build, mock_settings):
    mock_settings.from_env.return_value = Settings()
    mock_build.return_value.run.return_value = WorkflowOutput(output_text="18°C")

    assert run.main(["--approval", "always", "weather in Paris?"]) == 0
    mock_build.return_value.run.assert_called_once_with("weather in Paris?")
    assert mock_build.call_args.kwargs["approval"] == "always"


@patch("api_scout.run.Settings")
@patch("api_scout.run.build_workflow")
def test_main_workflow_failure_exit_code(mock_build, mock_settings):
    mock_settings.from_env.return_value = Settings()
    mock_build.return_value.run.side_effect = MissingOutput("discovery")
    assert run.main(["question"]) == 1


@patch("api_scout.run.Settings")
@patch("api_scout.run.build_workflow")
def test_main_invalid_input_exit_code(mock_build, mock_settings):
    mock_settings.from_env.return_value = Settings()
    mock_build.return_value.run.side_effect = InvalidInput("input_as_text is empty.")
    assert run.main(["   "]) == 2


def test_build_workflow_wires_settings():
    settings = Settings(workflow_id="wf_x", approval_poll_interval=0.25)
    workflow = run.build_workflow(settings, approval="never", client=MagicMock())

    runner = workflow._runner
    assert isinstance(runner, OpenAIRunner)
    assert runner._trace_metadata == {"__trace_source__": "agent-builder", "workflow_id": "wf_x"}
    assert runner._poll_interval == 0.25
    assert workflow._discovery_agent.name == "API MASTER"
    assert workflow._consumption_agent.name == "Agent"


@patch("api_scout.run.Settings")
@patch("api_scout.run.build_workflow")
def test_main_poll_interval_flag(mock_build, mock_settings):
    mock_settings.from_env.return_value = Settings()
    mock_build.return_value.run.return_value = WorkflowOutput(output_text="ok")

    assert run.main(["--poll-interval", "0.5", "question"]) == 0
    assert mock_build.call_args.kwargs["poll_interval"] == 0.5


@pytest.mark.parametrize("value", ["0", "-1", "soon"])
def test_poll_interval_must_be_positive_number(value):
    with pytest.raises(SystemExit) as excinfo:
        run._parse_args(["--poll-interval", value, "question"])
    assert excinfo.value.code == 2


def test_poll_interval_overrides_settings():
    settings = Settings(approval_poll_interval=3.0)
    workflow = run.build_workflow(settings, approval="never", client=MagicMock(), poll_interval=0.5)
    assert workflow._runner._poll_interval == 0.5
