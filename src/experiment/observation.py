"""Observation record produced by one experiment run."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict


@dataclass(frozen=True)
class Observation:
    """
    Immutable result of one paired control/candidate run.

    Fully populated before it is handed to a publisher.
    """

    name: str
    matched: bool
    control_duration: timedelta
    candidate_duration: timedelta

    @property
    def control_duration_ms(self) -> float:
        return self.control_duration.total_seconds() * 1000

    @property
    def candidate_duration_ms(self) -> float:
        return self.candidate_duration.total_seconds() * 1000

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "matched": self.matched,
            "control_duration_ms": round(self.control_duration_ms, 3),
            "candidate_duration_ms": round(self.candidate_duration_ms, 3),
        }
