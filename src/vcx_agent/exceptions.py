"""Custom exceptions."""


class VcxAgentError(Exception):
    """Base class for all custom exceptions.

    Useful to catch all of them.
    """


class ValidationError(VcxAgentError, ValueError):
    """A required input is missing or not allowed."""

    def __init__(self, field: str, reason: str = "not specified"):
        """Raise the ValidationError.

        Args:
            field (str): Name of the offending input field.
            reason (str): What is wrong with it.
        """
        self.field = field
        super().__init__(f"{field} {reason}")


class DependencyUnavailable(VcxAgentError):
    """A remote dependency did not answer a readiness probe."""


class ReadinessCancelled(VcxAgentError):
    """The readiness wait was cancelled before the dependency came up."""


class ConvergenceExhausted(VcxAgentError):
    """A protocol state poll ran out of attempts before reaching a terminal state."""

    def __init__(self, message: str, *, attempts_made: int | None = None):
        self.attempts_made = attempts_made
        super().__init__(message)


class CollaboratorError(VcxAgentError):
    """The native library or the storage collaborator reported a failure."""

    def __init__(self, operation: str, cause: BaseException):
        """Raise the CollaboratorError.

        Args:
            operation (str): Name of the collaborator operation that failed.
            cause (BaseException): Original error raised by the collaborator.
        """
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class ProofVerificationMismatch(VcxAgentError):
    """The proof exchange completed but its verification result was not the expected one."""

    def __init__(self, proof_state, message: str):
        self.proof_state = proof_state
        super().__init__(message)
