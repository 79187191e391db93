"""Experiment module - run a control and a candidate side by side."""

from .exceptions import (
    ScientistError,
    ExperimentConfigurationError,
    ComparerError,
    PublishError,
)
from .observation import Observation
from .outcome import Outcome, run_timed
from .comparator import ResultComparator
from .ordering import OrderRandomizer, default_randomizer
from .publisher import (
    ObservationPublisher,
    InMemoryObservationPublisher,
    get_publisher,
    set_publisher,
    reset_publisher,
)
from .runner import ExperimentInstance
from .scientist import ExperimentBuilder, science, science_async

__all__ = [
    "ScientistError",
    "ExperimentConfigurationError",
    "ComparerError",
    "PublishError",
    "Observation",
    "Outcome",
    "run_timed",
    "ResultComparator",
    "OrderRandomizer",
    "default_randomizer",
    "ObservationPublisher",
    "InMemoryObservationPublisher",
    "get_publisher",
    "set_publisher",
    "reset_publisher",
    "ExperimentInstance",
    "ExperimentBuilder",
    "science",
    "science_async",
]
