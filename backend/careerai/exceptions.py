"""Error taxonomy for the chat and review core.

Routes never catch these; handlers registered in ``careerai.main`` map each
family to an HTTP status.
"""
from typing import Optional


class CareerAIError(Exception):
    """Base class for all domain errors."""
    pass


class ConfigurationError(CareerAIError):
    """Operation cannot run with the current configuration. Never retried."""
    pass


class NoActivePromptError(ConfigurationError):
    """No prompt template is active for the requested category."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"No active prompt template for category '{category}'")


class ReviewValidationError(CareerAIError):
    """A submitted review answer batch was rejected before any write."""

    def __init__(self, question_id: Optional[int], reason: str):
        self.question_id = question_id
        self.reason = reason
        super().__init__(reason)


class GatewayError(CareerAIError):
    """The completion service failed. Retryable by the caller."""

    def __init__(self, message: str, turn_id: Optional[int] = None):
        self.turn_id = turn_id
        super().__init__(message)


class GatewayTimeoutError(GatewayError):
    """The completion service did not answer within the configured timeout."""
    pass


class PersistenceError(CareerAIError):
    """A database write failed and was rolled back."""
    pass


class NotFoundError(CareerAIError):
    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        if resource_id is None:
            super().__init__(f"{resource} not found")
        else:
            super().__init__(f"{resource} {resource_id} not found")


class UploadRejectedError(CareerAIError):
    """An uploaded file failed the type or size checks."""

    def __init__(self, message: str, too_large: bool = False):
        self.too_large = too_large
        super().__init__(message)
