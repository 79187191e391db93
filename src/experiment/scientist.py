"""
Entry points for defining and running experiments.

Usage:
    value = await science_async(
        "user-lookup",
        lambda e: e.use(legacy_lookup).try_candidate(new_lookup),
    )
"""

from __future__ import annotations

import asyncio
from typing import Callable, Generic, Optional, TypeVar

from src.experiment.comparator import Comparer
from src.experiment.exceptions import ExperimentConfigurationError
from src.experiment.outcome import Operation
from src.experiment.runner import ExperimentInstance
from src.experiment.publisher import (
    ObservationPublisher,
    get_publisher,
    reset_publisher,
    set_publisher,
)

T = TypeVar("T")


class ExperimentBuilder(Generic[T]):
    """Collects the pieces of an experiment before it is run."""

    def __init__(self, name: str):
        self.name = name
        self._control: Optional[Operation[T]] = None
        self._candidate: Optional[Operation[T]] = None
        self._comparer: Optional[Comparer[T]] = None

    def use(self, control: Operation[T]) -> "ExperimentBuilder[T]":
        """Set the control (existing behaviour)."""
        self._control = control
        return self

    def try_candidate(self, candidate: Operation[T]) -> "ExperimentBuilder[T]":
        """Set the candidate (new behaviour)."""
        self._candidate = candidate
        return self

    def compare(self, comparer: Comparer[T]) -> "ExperimentBuilder[T]":
        """Replace ``==`` with a custom equivalence predicate."""
        self._comparer = comparer
        return self

    def build(
        self,
        publisher: Optional[ObservationPublisher] = None,
    ) -> ExperimentInstance[T]:
        """
        Build a runnable experiment.

        Raises:
            ExperimentConfigurationError: If the name, control or candidate is missing
        """
        if not self.name or not self.name.strip():
            raise ExperimentConfigurationError("Experiment name must be a non-empty string")
        if self._control is None:
            raise ExperimentConfigurationError(f"Experiment '{self.name}' has no control (use)")
        if self._candidate is None:
            raise ExperimentConfigurationError(
                f"Experiment '{self.name}' has no candidate (try_candidate)"
            )

        return ExperimentInstance(
            self.name,
            self._control,
            self._candidate,
            comparer=self._comparer,
            publisher=publisher,
        )


async def science_async(
    name: str,
    configure: Callable[[ExperimentBuilder[T]], object],
    publisher: Optional[ObservationPublisher] = None,
) -> T:
    """
    Define and run an experiment from async code.

    Args:
        name: Experiment name
        configure: Callback that sets control, candidate and comparer on the builder
        publisher: Observation sink (process-wide publisher if None)

    Returns:
        The control's value (the control's exception is re-raised)
    """
    builder: ExperimentBuilder[T] = ExperimentBuilder(name)
    configure(builder)
    return await builder.build(publisher=publisher).run()


def science(
    name: str,
    configure: Callable[[ExperimentBuilder[T]], object],
    publisher: Optional[ObservationPublisher] = None,
) -> T:
    """
    Define and run an experiment from synchronous code.

    Raises:
        ExperimentConfigurationError: If called while an event loop is running
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(science_async(name, configure, publisher=publisher))

    raise ExperimentConfigurationError(
        "science() cannot be used inside a running event loop; await science_async() instead"
    )


__all__ = [
    "ExperimentBuilder",
    "science",
    "science_async",
    "get_publisher",
    "set_publisher",
    "reset_publisher",
]
