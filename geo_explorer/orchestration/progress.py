"""
Progress reporting for orchestrator runs.

Orchestrators announce step lifecycle transitions through a plain callback
(``ProgressCallback``). The usual receiver is a ``ThoughtTimeline``: an
ordered mapping from step id to step record where repeated updates for the
same id shallow-merge instead of appending.
"""
import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from geo_explorer.models import StepKind, StepStatus, ThoughtStep, ThoughtStepUpdate

logger = logging.getLogger("geo_explorer.progress")

ProgressCallback = Callable[[ThoughtStepUpdate], None]
StepListener = Callable[[ThoughtStep], None]

# Required step fields; an explicit None never blanks them
_REQUIRED_FIELDS = ("title", "status")


class ThoughtTimeline:
    """
    Owned, ordered record of one run's thought steps.

    Instances are callable so they can be passed directly as a progress
    callback. Insertion order is the order in which ids were first seen.
    """

    def __init__(self):
        self._steps: "OrderedDict[str, ThoughtStep]" = OrderedDict()
        self._listeners: List[StepListener] = []

    def report(self, update: Union[ThoughtStepUpdate, Dict[str, Any]]) -> ThoughtStep:
        """
        Merge a partial update into the step with the same id.

        Unknown ids create a new step with status ``pending`` and the id as
        its title unless the update says otherwise.
        """
        if not isinstance(update, ThoughtStepUpdate):
            update = ThoughtStepUpdate.model_validate(update)

        changes = update.model_dump(exclude_unset=True, exclude={"id"})
        for field in _REQUIRED_FIELDS:
            if changes.get(field, "") is None:
                changes.pop(field)

        existing = self._steps.get(update.id)
        if existing is None:
            step = ThoughtStep(
                id=update.id,
                title=changes.pop("title", update.id),
                status=changes.pop("status", StepStatus.PENDING),
                **changes,
            )
        else:
            step = existing.model_copy(update=changes)

        self._steps[update.id] = step
        logger.debug(f"Step '{step.id}' -> {step.status.value}")

        for listener in list(self._listeners):
            listener(step)
        return step

    __call__ = report

    def add_listener(self, listener: StepListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StepListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get(self, step_id: str) -> Optional[ThoughtStep]:
        return self._steps.get(step_id)

    def steps(self) -> List[ThoughtStep]:
        return list(self._steps.values())

    def clear(self) -> None:
        self._steps.clear()

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[ThoughtStep]:
        return iter(self.steps())


class StepTracker:
    """
    Convenience wrapper orchestrators use to emit step transitions.

    With no callback every call is a no-op; sequencing is unaffected.
    """

    def __init__(self, report: Optional[ProgressCallback] = None):
        self._report = report

    def emit(self, step_id: str, **fields) -> None:
        if self._report is None:
            return
        values = {key: value for key, value in fields.items() if value is not None}
        self._report(ThoughtStepUpdate(id=step_id, **values))

    def declare(self, step_id: str, title: str, kind: StepKind) -> None:
        self.emit(step_id, title=title, kind=kind, status=StepStatus.PENDING)

    def running(self, step_id: str, details: Optional[str] = None) -> None:
        self.emit(step_id, status=StepStatus.RUNNING, details=details)

    def success(self, step_id: str, details: Optional[str] = None) -> None:
        self.emit(step_id, status=StepStatus.SUCCESS, details=details)

    def error(self, step_id: str, details: str) -> None:
        self.emit(step_id, status=StepStatus.ERROR, details=details)

    def completed(self, step_id: str, title: str, kind: StepKind, details: Optional[str] = None) -> None:
        """Append a derived, already-finished step."""
        self.emit(step_id, title=title, kind=kind, status=StepStatus.SUCCESS, details=details)
