"""
Observation publisher contract and the process-wide publisher slot.

Concrete sinks for logs, metrics and chat live in src.monitoring.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from src.experiment.observation import Observation


class ObservationPublisher(ABC):
    """Sink for experiment observations. The runner awaits ``publish``."""

    @abstractmethod
    async def publish(self, observation: Observation) -> None:
        """Deliver one observation."""


class InMemoryObservationPublisher(ObservationPublisher):
    """Keeps every published observation in a list."""

    def __init__(self) -> None:
        self._observations: List[Observation] = []

    async def publish(self, observation: Observation) -> None:
        self._observations.append(observation)

    @property
    def observations(self) -> List[Observation]:
        return list(self._observations)

    def find(self, name: str) -> List[Observation]:
        return [o for o in self._observations if o.name == name]

    def clear(self) -> None:
        self._observations.clear()


_publisher: ObservationPublisher = InMemoryObservationPublisher()


def get_publisher() -> ObservationPublisher:
    """Return the process-wide publisher used when an experiment has none."""
    return _publisher


def set_publisher(publisher: ObservationPublisher) -> None:
    """Replace the process-wide publisher."""
    global _publisher
    _publisher = publisher


def reset_publisher() -> InMemoryObservationPublisher:
    """Restore a fresh in-memory publisher and return it."""
    publisher = InMemoryObservationPublisher()
    set_publisher(publisher)
    return publisher
