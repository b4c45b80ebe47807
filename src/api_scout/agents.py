# agents.py
# The two agent definitions: API MASTER (discovery) and Agent (consumption).
#
# Built once per process from Settings and shared by reference. Definitions
# are frozen; nothing downstream may modify them.

from api_scout.config import Settings
from api_scout.models import (
    AgentDefinition,
    DiscoveryContext,
    HostedMcpTool,
    ModelSettings,
    WebSearchTool,
)

# ---------------------------------------------------------------------------
# Instructions
# ---------------------------------------------------------------------------

API_MASTER_INSTRUCTIONS = (
    "You are a helpful assistant. Your job is to search the web for an open and "
    "free-to-use API to get the data the user wants. You will then create short, "
    "concise documentation on how the API works and how to call it correctly."
)

CONSUMER_INSTRUCTIONS_PREFIX = (
    "Your job is to use the below documented API to return an answer to the "
    "user's question."
)


def consumer_instructions(context: DiscoveryContext | None, _agent: AgentDefinition) -> str:
    """Embed the discovery stage's documentation, verbatim, after the fixed prefix."""
    if context is None:
        raise ValueError("The consumption agent needs the discovery output as context.")
    return f"{CONSUMER_INSTRUCTIONS_PREFIX} {context.input_output_text}"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _model_settings(settings: Settings) -> ModelSettings:
    return ModelSettings(reasoning_effort=settings.reasoning_effort, summary="auto", store=True)


def build_api_master(settings: Settings) -> AgentDefinition:
    return AgentDefinition(
        name="API MASTER",
        instructions=API_MASTER_INSTRUCTIONS,
        model=settings.model,
        tools=(WebSearchTool(search_context_size=settings.search_context_size),),
        settings=_model_settings(settings),
    )


def build_api_agent(settings: Settings) -> AgentDefinition:
    gateway = HostedMcpTool(
        server_label=settings.mcp_label,
        server_url=settings.mcp_url,
        allowed_tools=settings.mcp_allowed_tools,
        authorization=settings.mcp_token,
        require_approval="always",
    )
    return AgentDefinition(
        name="Agent",
        instructions=consumer_instructions,
        model=settings.model,
        tools=(gateway,),
        settings=_model_settings(settings),
    )
