"""Error kinds raised across the poster workflow.

Every user-facing error derives from ``PosterError`` and carries the HTTP status
the API layer answers with. None of them leave the session half-updated: the
current poster and the gallery only change after a step has fully succeeded.
"""

from __future__ import annotations


class PosterError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingInput(PosterError):
    """A required input (product image, concept, poster, instruction) is absent."""


class InvalidUpload(PosterError):
    """An uploaded file is empty or is not an image."""


class ProviderNotConfigured(PosterError):
    """The remote provider's API key is not set."""


class OperationInProgress(PosterError):
    status_code = 409


class RemoteCallFailure(PosterError):
    status_code = 502


class NoImageReturned(RemoteCallFailure):
    def __init__(self, message: str, model_text: str | None = None) -> None:
        super().__init__(message)
        self.model_text = model_text


class MalformedResponse(RemoteCallFailure):
    pass


class DecodeError(PosterError):
    status_code = 422


class SuggestionFailure(PosterError):
    # Logged by the debouncer, never surfaced to the user.
    status_code = 502
