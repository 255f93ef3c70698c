"""Maps the tools executed in a turn to the agent label shown in the UI."""

from __future__ import annotations

from collections.abc import Sequence

from simrs.models import AgentLabel
from simrs.tools.registry import ToolName

TOOL_AGENTS: dict[ToolName, AgentLabel] = {
    ToolName.GET_PATIENT_INFO: AgentLabel.PATIENT_INFO,
    ToolName.SCHEDULE_APPOINTMENT: AgentLabel.SCHEDULER,
    ToolName.GET_MEDICAL_RECORDS: AgentLabel.MEDICAL_RECORDS,
    ToolName.GET_BILLING_INFO: AgentLabel.BILLING,
    ToolName.GENERATE_DOCUMENT: AgentLabel.MEDICAL_RECORDS,
}


def resolve_agent_label(tools_executed: Sequence[str], grounding_present: bool) -> AgentLabel:
    """Pick the agent label for a finished turn.

    The last domain tool executed wins.  Search grounding only shows up as
    the label when no domain tool ran; otherwise the turn belongs to the
    Coordinator.
    """
    for name in reversed(tools_executed):
        try:
            return TOOL_AGENTS[ToolName(name)]
        except ValueError:
            continue
    if grounding_present:
        return AgentLabel.SEARCH_GROUNDED
    return AgentLabel.COORDINATOR
