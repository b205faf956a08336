"""Error types raised by the dependency gate."""

from __future__ import annotations


class DepgateError(Exception):
    """Base class for dependency gate failures."""


class ConfigError(DepgateError, ValueError):
    """Raised when workspace configuration carries invalid values."""


class ManifestError(DepgateError, ValueError):
    """A manifest entry is missing a required field or a field cannot be parsed."""

    def __init__(self, message: str, *, entry: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.entry = entry
        self.field = field


class FetchError(DepgateError):
    """A fetch could not be started, or failed after starting."""

    def __init__(self, message: str, *, locator: str | None = None) -> None:
        super().__init__(message)
        self.locator = locator

    @property
    def short_message(self) -> str:
        text = str(self).strip()
        return text.splitlines()[0] if text else self.__class__.__name__
