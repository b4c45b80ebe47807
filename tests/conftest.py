from types import SimpleNamespace

import pytest

from api_scout.agents import build_api_agent, build_api_master
from api_scout.config import Settings
from api_scout.models import MessageItem, RunResult


class StubRunner:
    """Scripted runner: hands out RunResults in order and records every call."""

    def __init__(self, results: list[RunResult]) -> None:
        self._results = list(results)
        self.calls: list[SimpleNamespace] = []

    def run(self, definition, items, context=None, cancel_event=None):
        self.calls.append(
            SimpleNamespace(definition=definition, items=items, context=context)
        )
        return self._results.pop(0)


def assistant_item(text: str, item_id: str) -> MessageItem:
    return MessageItem.from_service(
        {
            "id": item_id,
            "type": "message",
            "role": "assistant",
            "status": "completed",
            "content": [{"type": "output_text", "text": text, "annotations": []}],
        }
    )


@pytest.fixture
def settings():
    return Settings.from_env({"ZAPIER_MCP_TOKEN": "test-token"})


@pytest.fixture
def api_master(settings):
    return build_api_master(settings)


@pytest.fixture
def api_agent(settings):
    return build_api_agent(settings)
