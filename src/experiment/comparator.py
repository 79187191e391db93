"""
Equivalence check between control and candidate outcomes.
"""

from __future__ import annotations

import operator
from typing import Callable, Generic, Optional, TypeVar

from src.experiment.exceptions import ComparerError
from src.experiment.outcome import Outcome

T = TypeVar("T")

Comparer = Callable[[T, T], bool]


class ResultComparator(Generic[T]):
    """
    Decides whether a control and a candidate outcome match.

    The equality strategy is fixed when the comparator is built: the
    caller's comparer if one is given, otherwise ``==`` (the value type's
    own ``__eq__``).

    Failures are not compared. If either side raised the result is a
    mismatch, so two sides failing the same way still report
    ``matched=False``.
    """

    def __init__(self, comparer: Optional[Comparer[T]] = None, experiment_name: str = ""):
        self.experiment_name = experiment_name
        self._equals: Comparer[T] = comparer if comparer is not None else operator.eq

    def compare(self, control: Outcome[T], candidate: Outcome[T]) -> bool:
        """
        Compare two outcomes by value.

        Args:
            control: Outcome of the control side
            candidate: Outcome of the candidate side

        Returns:
            True when both values are considered equivalent

        Raises:
            ComparerError: If the equality strategy raises
        """
        # TODO: compare captured exceptions (type and args) once callers need
        # both-sides-failed to count as a match.
        if control.failed or candidate.failed:
            return False

        # None is resolved before any equality call
        if control.value is None and candidate.value is None:
            return True
        if control.value is None or candidate.value is None:
            return False

        try:
            return bool(self._equals(control.value, candidate.value))
        except Exception as e:
            raise ComparerError(self.experiment_name, str(e)) from e
