"""Shared error types for intentgate.

Only construction-time problems are raised to callers.  Failures inside
rules or audit storage are converted by :mod:`intentgate.core.boundary`
and never escape a gate evaluation.
"""


class IntentGateError(Exception):
    """Base error for all intentgate failures."""


class IntentValidationError(IntentGateError, ValueError):
    """An intent could not be built because a field is invalid."""

    def __init__(self, field: str, detail: str = "") -> None:
        self.field = field
        self.detail = detail or f"{field} must not be empty"
        super().__init__(self.detail)


class ConfigurationError(IntentGateError):
    """A gate or rule was configured with invalid parameters."""


class GateConfigError(ConfigurationError):
    """The gate was given an invalid rule list or option."""


class RuleConfigError(ConfigurationError):
    """A rule was constructed with invalid parameters."""

    def __init__(self, rule: str, detail: str) -> None:
        self.rule = rule
        self.detail = detail
        super().__init__(f"Invalid {rule} configuration: {detail}")


class PolicyValidationError(IntentGateError):
    """Raised when a policy YAML file fails parsing or validation."""
