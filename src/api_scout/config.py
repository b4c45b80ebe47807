# config.py
# Runtime configuration. Values come from the environment (optionally a .env
# file); nothing secret is ever hard-coded.

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator

DEFAULT_MODEL = "gpt-5"
DEFAULT_MCP_LABEL = "zapier"
DEFAULT_MCP_URL = "https://mcp.zapier.com/api/mcp/mcp"
DEFAULT_MCP_ALLOWED_TOOLS = ("webhooks_by_zapier_get",)
DEFAULT_WORKFLOW_ID = "wf_68e99d94b1588190a662ff80629dca3b028744904957fc06"
TRACE_SOURCE = "agent-builder"


class Settings(BaseModel):
    """Everything the agents and runner need, validated once at startup."""

    model: str = DEFAULT_MODEL
    search_context_size: str = Field(default="medium", pattern="^(low|medium|high)$")
    reasoning_effort: str = Field(default="low", pattern="^(low|medium|high)$")
    mcp_label: str = DEFAULT_MCP_LABEL
    mcp_url: str = DEFAULT_MCP_URL
    mcp_allowed_tools: tuple[str, ...] = DEFAULT_MCP_ALLOWED_TOOLS
    mcp_token: SecretStr | None = None
    workflow_id: str = DEFAULT_WORKFLOW_ID
    approval_poll_interval: float = Field(default=2.0, gt=0)

    @field_validator("mcp_allowed_tools", mode="before")
    @classmethod
    def _split_tools(cls, value):
        if isinstance(value, str):
            return tuple(name.strip() for name in value.split(",") if name.strip())
        return value

    @field_validator("mcp_token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Passing `env` skips .env loading and reads only that mapping, which
        keeps tests hermetic.
        """
        if env is None:
            load_dotenv()
            env = dict(os.environ)

        mapping = {
            "model": "API_SCOUT_MODEL",
            "search_context_size": "API_SCOUT_SEARCH_CONTEXT_SIZE",
            "reasoning_effort": "API_SCOUT_REASONING_EFFORT",
            "mcp_label": "API_SCOUT_MCP_LABEL",
            "mcp_url": "API_SCOUT_MCP_URL",
            "mcp_allowed_tools": "API_SCOUT_MCP_ALLOWED_TOOLS",
            "mcp_token": "ZAPIER_MCP_TOKEN",
            "workflow_id": "API_SCOUT_WORKFLOW_ID",
            "approval_poll_interval": "API_SCOUT_APPROVAL_POLL_INTERVAL",
        }
        values = {field: env[var] for field, var in mapping.items() if var in env}
        return cls.model_validate(values)

    def trace_metadata(self) -> dict[str, str]:
        return {"__trace_source__": TRACE_SOURCE, "workflow_id": self.workflow_id}
