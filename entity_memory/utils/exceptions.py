"""
Exception hierarchy for the entity memory graph.

Every error raised by this package inherits from EntityMemoryError, so the
surrounding application can catch a single type. Most of the package never
lets these escape: collaborator and store failures degrade to empty results.
"""


class EntityMemoryError(Exception):
    """
    Base exception for all entity memory errors.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize entity memory error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StoreError(EntityMemoryError):
    """
    Persistence errors.
    Raised when the entity store cannot read or write.
    """

    pass


class ValidationError(EntityMemoryError):
    """
    Validation errors.
    Raised when input is empty or malformed.
    """

    pass


class NotFoundError(EntityMemoryError):
    """
    Resource not found errors.
    Raised when an explicit user action targets an unknown entity.
    """

    pass


class ConfigurationError(EntityMemoryError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class LLMError(EntityMemoryError):
    """
    LLM operation errors.
    Raised when LLM calls fail (API errors, empty output, bad JSON).
    """

    pass


class EmbeddingError(EntityMemoryError):
    """
    Embedding generation errors.
    """

    pass


class CollaboratorError(EntityMemoryError):
    """
    External collaborator errors.
    Raised by the text-understanding, classifier, compressor and reasoner
    adapters; always caught by the services that call them.
    """

    pass
