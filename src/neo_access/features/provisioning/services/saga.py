"""Provisioning saga.

Runs an ordered list of steps that span systems without a shared
transaction. When a step fails, the steps that already completed are undone
in reverse order.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ....core.exceptions import ProvisionerConsistencyError

logger = logging.getLogger(__name__)

StepContext = Dict[str, Any]
Forward = Callable[[StepContext], Awaitable[Any]]
Compensate = Callable[[StepContext], Awaitable[None]]


@dataclass
class SagaStep:
    """One forward action and the action that undoes it.

    ``forward`` receives the shared context and its return value is stored in
    the context under the step name. ``compensate`` is only called when the
    step completed.
    """

    name: str
    forward: Forward
    compensate: Optional[Compensate] = None


@dataclass
class CompensationFailure:
    step: str
    error: Exception


@dataclass
class ProvisioningSaga:
    """Ordered steps with reverse-order compensation.

    Outcomes on a forward failure:
      * every compensation succeeded - the original error is re-raised;
      * a compensation failed - ``on_compensation_failure`` is called with the
        context and failures, then ``ProvisionerConsistencyError`` is raised
        from the original error.
    """

    name: str
    steps: List[SagaStep] = field(default_factory=list)
    on_compensation_failure: Optional[
        Callable[[StepContext, List[CompensationFailure]], Awaitable[None]]
    ] = None

    def add_step(self, name: str, forward: Forward, compensate: Optional[Compensate] = None) -> "ProvisioningSaga":
        self.steps.append(SagaStep(name=name, forward=forward, compensate=compensate))
        return self

    async def run(self, context: Optional[StepContext] = None) -> StepContext:
        context = {} if context is None else context
        completed: List[SagaStep] = []

        for step in self.steps:
            try:
                context[step.name] = await step.forward(context)
            except Exception as e:
                logger.warning(f"Saga {self.name}: step '{step.name}' failed: {e}")
                failures = await self._compensate(completed, context)
                if not failures:
                    raise
                if self.on_compensation_failure is not None:
                    await self.on_compensation_failure(context, failures)
                failed_steps = ", ".join(failure.step for failure in failures)
                raise ProvisionerConsistencyError(
                    f"Saga {self.name} could not undo step(s) {failed_steps} after '{step.name}' failed",
                    phase=step.name,
                    credential_id=context.get("credential_id"),
                    account_id=context.get("account_id"),
                ) from e
            completed.append(step)
            logger.debug(f"Saga {self.name}: step '{step.name}' completed")

        return context

    async def _compensate(self, completed: List[SagaStep], context: StepContext) -> List[CompensationFailure]:
        failures: List[CompensationFailure] = []
        for step in reversed(completed):
            if step.compensate is None:
                continue
            try:
                await step.compensate(context)
                logger.info(f"Saga {self.name}: compensated step '{step.name}'")
            except Exception as e:
                logger.error(f"Saga {self.name}: compensation of '{step.name}' failed: {e}")
                failures.append(CompensationFailure(step=step.name, error=e))
        return failures
