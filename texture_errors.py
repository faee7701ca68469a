"""Error kinds raised by the texture manifest core."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class TextureManagerError(Exception):
    """Base error; carries the failed operation and the path involved."""

    def __init__(self, operation: str, path: Optional[PathLike], detail: str) -> None:
        self.operation = operation
        self.path = str(path) if path is not None else ""
        self.detail = detail
        super().__init__(self._render())

    def _render(self) -> str:
        if self.path:
            return f"{self.operation} failed for {self.path}: {self.detail}"
        return f"{self.operation} failed: {self.detail}"


class ConfigNotFound(TextureManagerError):
    pass


class ConfigParseError(TextureManagerError):
    pass


class TextureIOError(TextureManagerError):
    pass


class UnsupportedFile(TextureManagerError):
    pass


class ArchiveError(TextureManagerError):
    pass


class PathEscape(TextureManagerError):
    pass


class DuplicateUniformName(TextureManagerError):
    pass


__all__ = [
    "ArchiveError",
    "ConfigNotFound",
    "ConfigParseError",
    "DuplicateUniformName",
    "PathEscape",
    "TextureIOError",
    "TextureManagerError",
    "UnsupportedFile",
]
