
class LLMUpstreamError(RuntimeError):
    """Raised when LLM provider fails (timeouts, network errors, rate limits, service unavailable)."""
    pass


class LLMContractError(RuntimeError):
    """Raised when LLM adapter violates contract (bad format or missing data)."""
    pass


class AdvisorDeskError(Exception):
    """Base class for errors raised by the dialog core."""
    pass


class ValidationError(AdvisorDeskError):
    """A required slot is missing or malformed (e.g. commit without a selected slot)."""
    pass


class NotFoundError(AdvisorDeskError):
    """A booking code could not be resolved."""
    pass


class ConflictError(AdvisorDeskError):
    """The requested interval was taken by another booking before commit."""
    pass


class GenerationExhausted(AdvisorDeskError):
    """No unused booking code was found within the attempt budget."""
    pass


class ExternalToolError(AdvisorDeskError):
    """A calendar, email or audit tool call failed or timed out."""

    def __init__(self, message: str, kind: str = "error") -> None:
        super().__init__(message)
        self.kind = kind
