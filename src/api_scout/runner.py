# runner.py
# Executes one agent definition against a conversation snapshot.
#
# The workflow only depends on the Runner protocol. OpenAIRunner is the real
# implementation on top of the OpenAI Responses API, which hosts the model,
# the web search tool and the MCP gateway. Gated gateway calls come back as
# mcp_approval_request items; the runner resolves them through an approval
# handler and continues the same response until the model is done.

import logging
import threading
import time
from typing import Any, Protocol

from openai import OpenAI, OpenAIError

from api_scout import display
from api_scout.approvals import ApprovalHandler, console_approval
from api_scout.errors import RunnerTransportFailure, WorkflowCancelled
from api_scout.models import (
    AgentDefinition,
    ApprovalRecord,
    ApprovalRequest,
    ApprovalStatus,
    MessageItem,
    RunResult,
)

logger = logging.getLogger(__name__)

APPROVAL_REQUEST_TYPE = "mcp_approval_request"
APPROVAL_RESPONSE_TYPE = "mcp_approval_response"


class Runner(Protocol):
    def run(
        self,
        definition: AgentDefinition,
        items: list[MessageItem],
        context: Any = None,
        cancel_event: threading.Event | None = None,
    ) -> RunResult: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _check_cancel(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise WorkflowCancelled("Run cancelled by caller.")


def _item_to_dict(item: Any) -> dict[str, Any]:
    if isinstance(item, dict):
        return item
    return item.model_dump(mode="json", exclude_none=True)


def _approval_requests(output: list[dict[str, Any]]) -> list[ApprovalRequest]:
    return [
        ApprovalRequest(
            id=raw["id"],
            server_label=raw.get("server_label", ""),
            name=raw.get("name", ""),
            arguments=raw.get("arguments", "") or "",
        )
        for raw in output
        if raw.get("type") == APPROVAL_REQUEST_TYPE
    ]


# ---------------------------------------------------------------------------
# OpenAI Responses runner
# ---------------------------------------------------------------------------


class OpenAIRunner:
    """
    Runner backed by the OpenAI Responses API.

    Example:
        runner = OpenAIRunner(trace_metadata=settings.trace_metadata())
        result = runner.run(api_master, log.snapshot())
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        approval_handler: ApprovalHandler = console_approval,
        trace_metadata: dict[str, str] | None = None,
        poll_interval: float = 2.0,
    ) -> None:
        self._client = client if client is not None else OpenAI()
        self._approval_handler = approval_handler
        self._trace_metadata = dict(trace_metadata or {})
        self._poll_interval = poll_interval

    # ------------------------------------------------------------------
    # Low-level service call
    # ------------------------------------------------------------------

    def _create(self, definition: AgentDefinition, instructions: str, **kwargs: Any) -> Any:
        request: dict[str, Any] = {
            "model": definition.model,
            "instructions": instructions,
            "reasoning": definition.settings.reasoning_param(),
            "store": definition.settings.store,
            **kwargs,
        }
        tools = definition.tool_params()
        if tools:
            request["tools"] = tools
        if self._trace_metadata:
            request["metadata"] = self._trace_metadata

        logger.debug("responses.create agent=%r model=%s", definition.name, definition.model)
        try:
            response = self._client.responses.create(**request)
        except OpenAIError as exc:
            raise RunnerTransportFailure(
                f"Agent {definition.name!r}: execution service call failed: {exc}"
            ) from exc
        logger.debug("response id=%s status=%s", response.id, response.status)
        return response

    # ------------------------------------------------------------------
    # Approvals
    # ------------------------------------------------------------------

    def _wait(self, cancel_event: threading.Event | None) -> None:
        if cancel_event is None:
            time.sleep(self._poll_interval)
            return
        if cancel_event.wait(self._poll_interval):
            raise WorkflowCancelled("Run cancelled while waiting for tool approval.")

    def _resolve(
        self, request: ApprovalRequest, cancel_event: threading.Event | None
    ) -> ApprovalRecord:
        """Ask the handler until it settles. PENDING just means poll again."""
        display.approval_requested(request)
        polls = 0
        while True:
            _check_cancel(cancel_event)
            status = ApprovalStatus(self._approval_handler(request))
            polls += 1
            if status is not ApprovalStatus.PENDING:
                display.approval_decided(request, status)
                return ApprovalRecord(request=request, status=status, polls=polls)
            if polls == 1:
                display.approval_pending(request)
            logger.debug("approval %s still pending after %d poll(s)", request.id, polls)
            self._wait(cancel_event)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(
        self,
        definition: AgentDefinition,
        items: list[MessageItem],
        context: Any = None,
        cancel_event: threading.Event | None = None,
    ) -> RunResult:
        """
        Drive one agent to completion.

        Returns every item the service produced (plus the approval responses
        sent back) in order. final_output is None when the service finished
        without any output text; the caller decides what that means.
        """
        _check_cancel(cancel_event)
        instructions = definition.resolve_instructions(context)
        conversation = [item.to_input() for item in items]

        response = self._create(definition, instructions, input=conversation)
        new_items: list[dict[str, Any]] = []
        approvals: list[ApprovalRecord] = []

        while True:
            output = [_item_to_dict(item) for item in response.output]
            new_items.extend(output)

            pending = _approval_requests(output)
            if not pending:
                break

            replies = []
            for request in pending:
                record = self._resolve(request, cancel_event)
                approvals.append(record)
                replies.append(
                    {
                        "type": APPROVAL_RESPONSE_TYPE,
                        "approval_request_id": request.id,
                        "approve": record.status is ApprovalStatus.APPROVED,
                    }
                )
            new_items.extend(replies)

            _check_cancel(cancel_event)
            if definition.settings.store:
                response = self._create(
                    definition, instructions, input=replies, previous_response_id=response.id
                )
            else:
                response = self._create(definition, instructions, input=conversation + new_items)

        final_output = response.output_text or None
        if final_output is None:
            logger.warning(
                "agent %r finished with status %s and no output", definition.name, response.status
            )

        return RunResult(
            new_items=[MessageItem.from_service(raw) for raw in new_items],
            final_output=final_output,
            status=response.status,
            response_id=response.id,
            approvals=approvals,
        )
