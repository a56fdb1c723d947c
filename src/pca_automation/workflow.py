"""Simple workflow runner for sequential provisioning steps."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from .models import StepEvent, StepStatus

logger = logging.getLogger(__name__)

WorkflowContext = Dict[str, object]
SkipResult = Union[str, bool, None]
StepListener = Callable[[StepEvent], None]


@dataclass(slots=True)
class WorkflowStep:
    name: str
    action: Callable[[WorkflowContext], None]
    skip: Optional[Callable[[WorkflowContext], SkipResult]] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Workflow steps require a non-empty name")


class WorkflowRunner:
    """Runs steps strictly in order against one shared context.

    A step whose skip predicate returns a non-empty reason is bypassed. The
    first step whose skip predicate or action raises aborts the run; the
    exception is re-raised as is and remote changes made by earlier steps
    are left in place.
    """

    def __init__(self, listener: Optional[StepListener] = None) -> None:
        self._log = logger
        self._listener = listener
        self.events: list[StepEvent] = []
        self.failed_step: Optional[str] = None

    def run(self, steps: list[WorkflowStep], context: Optional[WorkflowContext] = None) -> WorkflowContext:
        if context is None:
            context = {}
        self.events = []
        self.failed_step = None
        for step in steps:
            try:
                reason = step.skip(context) if step.skip is not None else None
            except Exception as exc:
                self._fail(step, exc)
                raise
            if reason:
                detail = reason if isinstance(reason, str) else "skipped"
                self._log.info("Skipping workflow step '%s': %s", step.name, detail)
                self._record(StepEvent(step.name, StepStatus.SKIPPED, detail))
                continue

            self._log.info("Running workflow step '%s'", step.name)
            try:
                step.action(context)
            except Exception as exc:
                self._fail(step, exc)
                raise
            self._record(StepEvent(step.name, StepStatus.EXECUTED))
        return context

    def _fail(self, step: WorkflowStep, exc: Exception) -> None:
        self._log.error("Workflow step '%s' failed: %s", step.name, exc)
        self.failed_step = step.name
        self._record(StepEvent(step.name, StepStatus.FAILED, str(exc)))

    def _record(self, event: StepEvent) -> None:
        self.events.append(event)
        if self._listener is not None:
            self._listener(event)
