import re
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from geo_explorer.models import StepKind, StepStatus, ThoughtStep

_URL_PATTERN = re.compile(r'^https?://\S+$', re.IGNORECASE)

# Icon per step kind while the step is pending or successful
KIND_ICONS: Dict[StepKind, str] = {
    StepKind.LOOKUP: "search",
    StepKind.GEOCODE: "pin",
    StepKind.ROUTE_GENERATION: "route",
    StepKind.ROUTE_SUMMARY: "road",
    StepKind.RECOMMENDATION: "star",
    StepKind.ANALYSIS: "search",
    StepKind.REASONING: "bulb",
    StepKind.FINAL_ANSWER: "check",
    StepKind.DATA_SOURCE: "link",
}

# Status overrides the kind icon for in-flight and failed steps
STATUS_ICONS: Dict[StepStatus, str] = {
    StepStatus.RUNNING: "spinner",
    StepStatus.ERROR: "error",
}


class TimelineEntry(BaseModel):
    id: str
    title: str
    status: StepStatus
    kind: Optional[StepKind] = None
    details: Optional[str] = None
    icon: str
    emphasis: str
    details_is_link: bool = False


def _emphasis(step: ThoughtStep) -> str:
    if step.status == StepStatus.ERROR:
        return "error"
    if step.kind == StepKind.RECOMMENDATION or step.kind == StepKind.FINAL_ANSWER:
        return "highlight"
    if step.status == StepStatus.PENDING:
        return "muted"
    return "normal"


def _icon(step: ThoughtStep) -> str:
    if step.status in STATUS_ICONS:
        return STATUS_ICONS[step.status]
    if step.kind is None:
        return "dot"
    return KIND_ICONS.get(step.kind, "dot")


def is_url(text: Optional[str]) -> bool:
    return bool(text) and bool(_URL_PATTERN.match(text.strip()))


def build_timeline(steps: Sequence[ThoughtStep]) -> List[TimelineEntry]:
    """
    Decorate thought steps for display.

    Icon and emphasis depend on the step kind and status only, never on the
    step id. Data source details that are URLs are flagged as links.
    """
    return [
        TimelineEntry(
            id=step.id,
            title=step.title,
            status=step.status,
            kind=step.kind,
            details=step.details,
            icon=_icon(step),
            emphasis=_emphasis(step),
            details_is_link=step.kind == StepKind.DATA_SOURCE and is_url(step.details),
        )
        for step in steps
    ]
