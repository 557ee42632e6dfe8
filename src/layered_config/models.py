from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, Literal, Mapping, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel

from layered_config.errors import ConfigLoadError, DefaultFileCreated

FileFormat = Literal["json", "toml", "yaml"]

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class Defaults:
    """Every field of the model's default instance."""


@dataclass(frozen=True, slots=True)
class Environment:
    """
    Process environment variables.

    With no prefix and no delimiter, keys are matched case-sensitively against
    field names as they are. `prefix` is stripped before matching and
    `nested_delimiter` splits the remainder into nested field names.
    """

    prefix: str = ""
    nested_delimiter: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Dotenv:
    """Key/value pairs of a .env file, matched like `Environment`."""

    path: str = ".env"
    prefix: str = ""
    nested_delimiter: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FileSource:
    """
    A structured config file.

    When `required` is set, an absent file is a read error. Otherwise it
    contributes nothing, which lets a missing field bootstrap that same file.
    """

    format: FileFormat
    path: str
    required: bool = True

    @classmethod
    def json(cls, path: str | Path, *, required: bool = True) -> FileSource:
        return cls(format="json", path=str(path), required=required)

    @classmethod
    def toml(cls, path: str | Path, *, required: bool = True) -> FileSource:
        return cls(format="toml", path=str(path), required=required)

    @classmethod
    def yaml(cls, path: str | Path, *, required: bool = True) -> FileSource:
        return cls(format="yaml", path=str(path), required=required)


Source = Union[Defaults, Environment, Dotenv, FileSource]


@dataclass(frozen=True, slots=True)
class LoadRequest:
    """
    Inputs for a single load.

    `environ` replaces `os.environ` for `Environment` sources when given.
    """

    sources: Sequence[Source] = (Defaults(),)
    fallback: Optional[FileSource] = None
    environ: Optional[Mapping[str, str]] = None


@dataclass(frozen=True, slots=True)
class LoadedValue(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class CreatedDefaultFile:
    path: Path

    def unwrap(self) -> Any:
        raise DefaultFileCreated(self.path)


@dataclass(frozen=True, slots=True)
class Failure:
    error: ConfigLoadError

    def unwrap(self) -> Any:
        raise self.error


Outcome = Union[LoadedValue[T], CreatedDefaultFile, Failure]


@dataclass(frozen=True, slots=True)
class LoadEvent:
    name: str
    fields: Mapping[str, Any] = field(default_factory=dict)


def default_instance(model: type[T]) -> T:
    """Build the model's default value, preferring a `default_config()` classmethod."""
    factory = getattr(model, "default_config", None)
    if callable(factory):
        return factory()
    return model()
