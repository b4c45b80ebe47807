# api_scout
# Two-stage agent workflow: discover a free public API, then answer with it.

from api_scout.workflow import Workflow, WorkflowRun, WorkflowState

__all__ = ["Workflow", "WorkflowRun", "WorkflowState"]
