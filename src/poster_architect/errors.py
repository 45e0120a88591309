from __future__ import annotations


class PosterError(Exception):
    """Base class for everything the editor reports back to the user."""


class ValidationError(PosterError):
    """A trigger was missing an input (images, concept, instruction). No call was made."""


class RemoteFailure(PosterError):
    """The generative model call failed (network, API or parse error)."""


class NoImageReturned(RemoteFailure):
    """The call went through but the response carried no image payload."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "The model did not return an image. It may have refused the request.")


class GeometryUnavailable(PosterError):
    """Displayed or natural image size is not known yet, so no mask can be built."""
