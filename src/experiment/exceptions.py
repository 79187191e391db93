"""
Custom exception hierarchy for experiment runs.

Control and candidate failures are never wrapped: the control's exception
is re-raised as-is and the candidate's is absorbed into the observation.
The classes below cover failures of the harness itself.
"""


class ScientistError(Exception):
    """
    Base exception for all harness errors.
    """

    pass


class ExperimentConfigurationError(ScientistError):
    """
    Raised when an experiment or the harness configuration is incomplete or invalid.

    Examples: a builder without a control, an empty experiment name, or a
    publisher config that fails schema validation.
    """

    pass


class ComparerError(ScientistError):
    """
    Raised when a caller-supplied comparer raises.

    Comparers must be pure and total. A failing comparer is a programming
    error, so it propagates to the caller instead of being recorded as a
    mismatch. The original exception is available as ``__cause__``.
    """

    def __init__(self, experiment_name: str, message: str):
        super().__init__(f"Comparer for experiment '{experiment_name}' failed: {message}")
        self.experiment_name = experiment_name


class PublishError(ScientistError):
    """
    Raised by publishers when an observation cannot be delivered.

    The runner logs and drops this error; it never reaches the caller.
    """

    pass
