"""PAINEL — Caller-facing exceptions.

Bad data degrades silently inside the engines. These exceptions are reserved
for bad callers: arguments that are structurally wrong, not rows that are
merely incomplete.
"""


class InvalidArgumentError(ValueError):
    """Raised when an aggregation call receives a malformed argument."""

    def __init__(self, message: str, argument: str = ""):
        self.argument = argument
        super().__init__(message)


class ReportNotFoundError(LookupError):
    """Raised when a requested month id does not exist in the dataset pool."""

    def __init__(self, month_id: str):
        self.month_id = month_id
        super().__init__(f"Month '{month_id}' not found")
