"""Error taxonomy shared by the catalog, selection, and chat components."""

from __future__ import annotations


class RoutineBuilderError(Exception):
    """Base class for all application errors."""


class LoadError(RoutineBuilderError):
    """Catalog source is unreachable or malformed."""


class StorageParseError(RoutineBuilderError):
    """Persisted selection could not be decoded."""


class StorageWriteError(RoutineBuilderError):
    """Selection could not be written to local storage; nothing was changed."""


class ServiceError(RoutineBuilderError):
    """Remote chat endpoint answered with an error payload."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransportError(RoutineBuilderError):
    """Network failure, timeout, or a response that is not usable JSON."""


class ChatBusyError(RoutineBuilderError):
    """A chat submission arrived while a reply is still awaited."""
