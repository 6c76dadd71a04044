"""
Step sequencing for multi-row writes.

Storage offers no transaction across gateway calls, so each mutation is an
ordered list of named steps. A step runs under one of two policies:

``ABORT``
    A ``StorageError`` stops the sequence. Compensations registered by the
    steps that already succeeded run in reverse order, then the error is
    re-raised to the caller.

``CONTINUE``
    A ``StorageError`` is logged and recorded on the outcome; the sequence
    goes on. The caller still sees the primary entity, together with the list
    of secondary steps that failed.

Only ``StorageError`` is handled. ``NotFound`` and ``ValidationError`` raised
from inside a step propagate untouched.
"""
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from utils.errors import StorageError

logger = logging.getLogger("saga")


class StepPolicy(str, Enum):
    ABORT = "abort"
    CONTINUE = "continue"


@dataclass
class StepFailure:
    step: str
    error: str


@dataclass
class MutationOutcome:
    entity: dict
    failures: List[StepFailure] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.failures)

    def as_response(self) -> dict:
        return {**self.entity, "failures": [asdict(failure) for failure in self.failures]}


class Saga:
    def __init__(self, name: str):
        self.name = name
        self.failures: List[StepFailure] = []
        self._compensations = []

    def run(
        self,
        step: str,
        action: Callable[[], Any],
        policy: StepPolicy = StepPolicy.ABORT,
        compensate: Optional[Callable[[Any], Any]] = None,
    ):
        """Run one step and return its result (``None`` for a failed CONTINUE step).

        ``compensate`` receives the step's result and is only called if a later
        ABORT step fails.
        """
        try:
            result = action()
        except StorageError as exc:
            if policy is StepPolicy.CONTINUE:
                logger.warning(f"[{self.name}] step '{step}' failed, continuing: {exc.message}")
                self.failures.append(StepFailure(step=step, error=exc.message))
                return None
            logger.error(f"[{self.name}] step '{step}' failed, aborting: {exc.message}")
            self._unwind()
            raise
        if compensate is not None:
            self._compensations.append((step, compensate, result))
        return result

    def outcome(self, entity: dict) -> MutationOutcome:
        return MutationOutcome(entity=entity, failures=list(self.failures))

    def _unwind(self):
        while self._compensations:
            step, compensate, result = self._compensations.pop()
            try:
                compensate(result)
            except StorageError as exc:
                # the original failure is what the caller gets
                logger.error(f"[{self.name}] compensation for '{step}' failed: {exc.message}")
            else:
                logger.info(f"[{self.name}] compensated step '{step}'")
