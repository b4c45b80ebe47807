# models.py
# Data contracts for the two-stage API discovery workflow.
# No business logic lives here — pure schema and validation.

from enum import Enum
from typing import Any, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

from api_scout.errors import RunIncomplete


# ---------------------------------------------------------------------------
# Conversation items
# ---------------------------------------------------------------------------


class ContentPart(BaseModel):
    """One typed part of a message, e.g. {"type": "input_text", "text": "..."}."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    text: str | None = None


class MessageItem(BaseModel):
    """
    A single conversation item.

    User input carries a role and typed content parts. Items produced by the
    execution service (reasoning, web_search_call, mcp_call, ...) carry a
    `type` instead and keep every field the service sent, untouched.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    role: str | None = None
    type: str | None = None
    content: list[ContentPart] | str | None = None

    @classmethod
    def user_text(cls, text: str) -> "MessageItem":
        return cls(role="user", content=[ContentPart(type="input_text", text=text)])

    @classmethod
    def from_service(cls, raw: dict[str, Any]) -> "MessageItem":
        return cls.model_validate(raw)

    def to_input(self) -> dict[str, Any]:
        """Render back into the request shape the execution service accepts."""
        return self.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Tool bindings
# ---------------------------------------------------------------------------


class WebSearchTool(BaseModel):
    """Hosted web search. Opaque to the workflow."""

    model_config = ConfigDict(frozen=True)

    type: Literal["web_search"] = "web_search"
    search_context_size: Literal["low", "medium", "high"] = "medium"
    user_location_type: Literal["approximate"] = "approximate"

    def to_param(self) -> dict[str, Any]:
        return {
            "type": "web_search_preview",
            "search_context_size": self.search_context_size,
            "user_location": {"type": self.user_location_type},
        }


class HostedMcpTool(BaseModel):
    """
    Remote tool gateway reached through a hosted MCP server.

    require_approval="conditional" gates only the tools named in
    approval_required_tools and lets approval_exempt_tools through.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["hosted_mcp"] = "hosted_mcp"
    server_label: str
    server_url: str
    allowed_tools: tuple[str, ...] = ()
    authorization: SecretStr | None = None
    require_approval: Literal["always", "never", "conditional"] = "always"
    approval_required_tools: tuple[str, ...] = ()
    approval_exempt_tools: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _conditional_needs_tool_names(self) -> "HostedMcpTool":
        if self.require_approval == "conditional" and not (
            self.approval_required_tools or self.approval_exempt_tools
        ):
            raise ValueError(
                "conditional approval needs approval_required_tools or approval_exempt_tools"
            )
        return self

    def approval_param(self) -> str | dict[str, Any]:
        if self.require_approval != "conditional":
            return self.require_approval
        param: dict[str, Any] = {}
        if self.approval_required_tools:
            param["always"] = {"tool_names": list(self.approval_required_tools)}
        if self.approval_exempt_tools:
            param["never"] = {"tool_names": list(self.approval_exempt_tools)}
        return param

    def to_param(self) -> dict[str, Any]:
        param: dict[str, Any] = {
            "type": "mcp",
            "server_label": self.server_label,
            "server_url": self.server_url,
            "require_approval": self.approval_param(),
        }
        if self.allowed_tools:
            param["allowed_tools"] = list(self.allowed_tools)
        if self.authorization is not None:
            param["headers"] = {
                "Authorization": f"Bearer {self.authorization.get_secret_value()}"
            }
        return param


ToolBinding = Union[WebSearchTool, HostedMcpTool]


# ---------------------------------------------------------------------------
# Agent definitions
# ---------------------------------------------------------------------------


class ModelSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    reasoning_effort: Literal["low", "medium", "high"] = "low"
    summary: Literal["auto", "concise", "detailed"] = "auto"
    store: bool = True

    def reasoning_param(self) -> dict[str, str]:
        return {"effort": self.reasoning_effort, "summary": self.summary}


# Called as fn(context, agent_definition).
InstructionsFn = Callable[[Any, Any], str]


class AgentDefinition(BaseModel):
    """A named, immutable reasoning unit: instructions + model + tools."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    instructions: str | InstructionsFn
    model: str
    tools: tuple[ToolBinding, ...] = ()
    settings: ModelSettings = Field(default_factory=ModelSettings)

    def resolve_instructions(self, context: Any = None) -> str:
        """Literal instructions pass through; computed ones see only (context, self)."""
        if callable(self.instructions):
            return self.instructions(context, self)
        return self.instructions

    def tool_params(self) -> list[dict[str, Any]]:
        return [tool.to_param() for tool in self.tools]


# ---------------------------------------------------------------------------
# Approvals
# ---------------------------------------------------------------------------


class ApprovalStatus(str, Enum):
    APPROVED = "approved"
    DENIED = "denied"
    PENDING = "pending"


class ApprovalRequest(BaseModel):
    """A gated gateway call waiting on a decision."""

    model_config = ConfigDict(frozen=True)

    id: str
    server_label: str
    name: str
    arguments: str = ""


class ApprovalRecord(BaseModel):
    request: ApprovalRequest
    status: ApprovalStatus
    polls: int = Field(default=1, description="How many times the handler was asked.")


# ---------------------------------------------------------------------------
# Run + workflow I/O
# ---------------------------------------------------------------------------


class DiscoveryContext(BaseModel):
    """Side-channel context handed to the consumption agent's instructions."""

    model_config = ConfigDict(frozen=True)

    input_output_text: str


class RunResult(BaseModel):
    """Outcome of one runner invocation."""

    new_items: list[MessageItem] = Field(default_factory=list)
    final_output: str | None = None
    status: str | None = None
    response_id: str | None = None
    approvals: list[ApprovalRecord] = Field(default_factory=list)

    def require_output(self) -> str:
        if not self.final_output:
            raise RunIncomplete(
                f"Run ended with status {self.status or 'unknown'!r} and no final output."
            )
        return self.final_output


class WorkflowInput(BaseModel):
    input_as_text: str


class WorkflowOutput(BaseModel):
    output_text: str
