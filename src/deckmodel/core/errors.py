from __future__ import annotations


class DeckModelError(Exception):
    """Base class for conversion failures."""


class InvalidPackageError(DeckModelError):
    """The input is not a readable presentation package."""


class PartNotFoundError(DeckModelError, KeyError):
    """An archive entry was requested that the package does not contain."""

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"part not found in package: {self.path}"


class MissingThemeError(DeckModelError):
    """No theme relationship or theme part; the whole conversion is aborted."""


class GroupTransformError(DeckModelError, ValueError):
    """A group declares a zero child extent, so its children cannot be mapped."""
