"""
Experiment runner.

Executes a control and a candidate in random order, compares their
results, publishes an Observation and hands the control's outcome back
to the caller as if the candidate never existed.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from src.experiment.comparator import Comparer, ResultComparator
from src.experiment.observation import Observation
from src.experiment.ordering import OrderRandomizer, default_randomizer
from src.experiment.outcome import Operation, Outcome, run_timed
from src.experiment.publisher import ObservationPublisher, get_publisher
from src.utils.logger import get_logger, summarize_value

T = TypeVar("T")

logger = get_logger(__name__)


class ExperimentInstance(Generic[T]):
    """
    One configured experiment. Every ``run`` is independent of the others.

    Attributes:
        name: Experiment name carried on every observation
        control: Trusted operation whose outcome is returned to the caller
        candidate: Operation under validation; its outcome is only observed
    """

    def __init__(
        self,
        name: str,
        control: Operation[T],
        candidate: Operation[T],
        comparer: Optional[Comparer[T]] = None,
        publisher: Optional[ObservationPublisher] = None,
        order: Optional[OrderRandomizer] = None,
    ):
        """
        Args:
            name: Experiment name
            control: Zero-argument sync or async callable
            candidate: Zero-argument sync or async callable
            comparer: Optional equivalence predicate, used instead of ``==``
            publisher: Observation sink (process-wide publisher if None)
            order: Order randomizer (process-wide randomizer if None)
        """
        self.name = name
        self.control = control
        self.candidate = candidate
        self.comparator: ResultComparator[T] = ResultComparator(comparer, experiment_name=name)
        self.publisher = publisher
        self.order = order or default_randomizer()

    async def run(self) -> T:
        """
        Run both sides, publish the observation and return the control's value.

        Returns:
            The control's value

        Raises:
            Exception: The control's own exception, unchanged
            ComparerError: If the custom comparer raises
        """
        control_first = self.order.control_first()
        logger.debug(
            "Running experiment",
            operation="run_experiment",
            context={"experiment": self.name, "control_first": control_first},
        )

        if control_first:
            control_outcome = await run_timed(self.control)
            candidate_outcome = await run_timed(self.candidate)
        else:
            candidate_outcome = await run_timed(self.candidate)
            control_outcome = await run_timed(self.control)

        matched = self.comparator.compare(control_outcome, candidate_outcome)

        observation = Observation(
            name=self.name,
            matched=matched,
            control_duration=control_outcome.duration,
            candidate_duration=candidate_outcome.duration,
        )
        if not matched:
            self._log_mismatch(control_outcome, candidate_outcome)

        await self._publish(observation)

        return control_outcome.unwrap()

    async def _publish(self, observation: Observation) -> None:
        publisher = self.publisher if self.publisher is not None else get_publisher()
        try:
            await publisher.publish(observation)
        except Exception as e:  # noqa: BLE001
            # A broken sink must not change what the caller sees
            logger.error(
                "Failed to publish observation",
                operation="publish_observation",
                context={"experiment": self.name, "publisher": type(publisher).__name__},
                error=f"{type(e).__name__}: {e}",
            )

    def _log_mismatch(self, control: Outcome[T], candidate: Outcome[T]) -> None:
        logger.info(
            "Experiment mismatch",
            operation="run_experiment",
            context={
                "experiment": self.name,
                "control": _describe(control),
                "candidate": _describe(candidate),
            },
        )


def _describe(outcome: Outcome) -> str:
    if outcome.failed:
        return f"raised {type(outcome.failure).__name__}: {outcome.failure}"
    return summarize_value(outcome.value)
