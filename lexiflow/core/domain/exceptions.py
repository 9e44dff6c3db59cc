# lexiflow/core/domain/exceptions.py
from typing import Dict


class DomainError(Exception):
    """Base class for all domain-level exceptions."""
    code = "domain_error"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code:
            self.code = code
        super().__init__(self.message)

    def as_payload(self) -> Dict[str, str]:
        """Machine-readable error body; never carries tracebacks or credentials."""
        return {"error": self.code, "message": self.message}

# --- Validation Errors ---

class InvalidRequestError(DomainError):
    """Raised when a required request field is missing or malformed."""
    code = "invalid_request"

    def __init__(self, reason: str):
        super().__init__(f"Invalid request: {reason}")


class BatchTooLargeError(DomainError):
    """Raised when a bulk upload exceeds its size tier. Nothing is written."""
    code = "batch_too_large"

    def __init__(self, size: int, limit: int, tier: str):
        self.size = size
        self.limit = limit
        self.tier = tier
        super().__init__(
            f"Batch size {size} exceeds tier '{tier}' limit of {limit}; nothing was changed."
        )

# --- Process/State Errors ---

class ContributionError(DomainError):
    """Raised when a contribution cannot be prepared or the hosting API rejects a step."""
    code = "contribution_failed"


class ContributionInProgressError(ContributionError):
    """Raised when another contribution already holds the processing guard."""
    code = "contribution_in_progress"

    def __init__(self):
        super().__init__("A dictionary contribution is already in progress.")
