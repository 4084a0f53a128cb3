"""Exception hierarchy for Post Studio."""

from __future__ import annotations


class PostStudioError(Exception):
    """Base class for every error raised by this package."""


class TopicValidationError(PostStudioError, ValueError):
    """The submitted topic is empty after trimming."""


class StreamError(PostStudioError):
    """The server reported a failure on the ``error`` event."""


class TransportError(StreamError):
    """The connection failed without a typed ``error`` event."""


class MalformedResultError(StreamError):
    """A ``result`` payload could not be parsed as a GenerationResult."""


class SourceError(PostStudioError):
    """The item source (X recent search) returned an error response."""


class ModerationError(PostStudioError):
    """The moderation endpoint returned an error response."""
