# errors.py
# Exception taxonomy for the plan architect.
#
# Leaf components raise these; only the retry loop in planner.py catches
# them and turns them into PlanResult values.


class PlannerError(Exception):
    """Base class for every planner failure."""


class SetupError(PlannerError):
    """Grounding context or prompt assembly failed before any oracle call. Fatal."""


class RetryableError(PlannerError):
    """A bad oracle response. Fed back to the oracle as a correction."""


class ExtractionError(RetryableError):
    """No JSON-shaped plan candidate was found in the oracle text."""


class PlanParseError(RetryableError):
    """The candidate text is not valid JSON."""


class PlanValidationError(RetryableError):
    """The JSON parsed but does not describe an executable plan."""


class AbortError(PlannerError):
    """Cancellation was observed. Consumes no retry."""


class RetriesExhaustedError(PlannerError):
    """Retryable failures persisted past the attempt bound."""

    def __init__(self, attempts: int, last_error: str, raw_response: str = "") -> None:
        super().__init__(f"No valid plan after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error
        self.raw_response = raw_response


class OracleError(PlannerError):
    """The oracle transport failed to produce a response."""


class VariableResolutionError(PlannerError):
    """A ``{{name}}`` reference in task parameters could not be resolved."""
