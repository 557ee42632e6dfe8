from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional, Sequence

from pydantic import ValidationError

IOOperation = Literal["read", "create_dirs", "create", "write"]


class ConfigLoadError(Exception):
    """Base exception for every failure surfaced by the loader."""

    def __init__(self, message: str, *, path: Optional[str] = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.message = message
        self.path = path


class ConfigIOError(ConfigLoadError):
    def __init__(self, path: str | Path, cause: OSError, *, operation: IOOperation):
        super().__init__(f"{operation} failed: {cause}", path=str(path))
        self.cause = cause
        self.operation = operation


class SourceReadError(ConfigIOError):
    """Raised when a configured file source cannot be read."""

    def __init__(self, path: str | Path, cause: OSError):
        super().__init__(path, cause, operation="read")


class CodecError(ConfigLoadError):
    def __init__(self, format: str, path: str | Path, cause: Exception, *, action: str = "decoding"):
        super().__init__(f"{action} {format} failed: {cause}", path=str(path))
        self.format = format
        self.cause = cause


class ExtractionError(ConfigLoadError):
    """The merged document could not be turned into the target model."""

    def __init__(self, model_name: str, validation_error: ValidationError):
        super().__init__(f"extracting {model_name} failed: {validation_error}")
        self.model_name = model_name
        self.validation_error = validation_error


class MissingFieldError(ExtractionError):
    """Every extraction error was a missing required field."""

    def __init__(self, model_name: str, validation_error: ValidationError, fields: Sequence[str]):
        super().__init__(model_name, validation_error)
        self.fields = tuple(fields)


class BootstrapError(ConfigLoadError):
    """Base for failures while writing a default config file."""


class SerializationFailed(BootstrapError, CodecError):
    def __init__(self, format: str, path: str | Path, cause: Exception):
        CodecError.__init__(self, format, path, cause, action="serialising default config to")


class BootstrapIOError(BootstrapError, ConfigIOError):
    def __init__(self, path: str | Path, cause: OSError, *, operation: IOOperation):
        ConfigIOError.__init__(self, path, cause, operation=operation)


class DefaultFileCreated(ConfigLoadError):
    """Raised by `CreatedDefaultFile.unwrap()`; the caller should edit the file and rerun."""

    def __init__(self, path: str | Path):
        super().__init__("created default config file, fill it in and rerun", path=str(path))
