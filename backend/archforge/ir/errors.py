from typing import Optional


class ArchForgeError(Exception):
    """Base class for every error raised by the architecture pipeline."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LLMError(ArchForgeError):
    """The chat-completions endpoint failed or returned nothing usable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationError(ArchForgeError):
    """Synthesis could not produce a usable architecture graph."""


class EditError(ArchForgeError):
    """An edit instruction could not be reconciled into a valid diff."""


class ClassificationError(ArchForgeError):
    """Model-backed intent classification failed. Never leaves the classifier."""


class SessionBusyError(ArchForgeError):
    """A request is already outstanding for this editing session."""


class JSONExtractionError(ValueError):
    """No JSON object could be recovered from a model response."""


class ArchitectureNotFoundError(KeyError):
    def __init__(self, architecture_id: str):
        super().__init__(architecture_id)
        self.architecture_id = architecture_id

    def __str__(self) -> str:
        return f"Architecture not found: {self.architecture_id}"

