"""Layered configuration loading into pydantic models, with default file bootstrap."""

from layered_config.bootstrap import create_default_file
from layered_config.codecs import Codec, get_codec, register_codec
from layered_config.errors import (
    BootstrapError,
    BootstrapIOError,
    CodecError,
    ConfigIOError,
    ConfigLoadError,
    DefaultFileCreated,
    ExtractionError,
    MissingFieldError,
    SerializationFailed,
    SourceReadError,
)
from layered_config.interfaces import ConfigLoader, LoadObserver
from layered_config.loader import LayeredConfigLoader, load_config
from layered_config.models import (
    CreatedDefaultFile,
    Defaults,
    Dotenv,
    Environment,
    Failure,
    FileSource,
    LoadedValue,
    LoadEvent,
    LoadRequest,
    Outcome,
    Source,
)

__all__ = [
    "BootstrapError",
    "BootstrapIOError",
    "Codec",
    "CodecError",
    "ConfigIOError",
    "ConfigLoadError",
    "ConfigLoader",
    "CreatedDefaultFile",
    "DefaultFileCreated",
    "Defaults",
    "Dotenv",
    "Environment",
    "ExtractionError",
    "Failure",
    "FileSource",
    "LayeredConfigLoader",
    "LoadEvent",
    "LoadObserver",
    "LoadRequest",
    "LoadedValue",
    "MissingFieldError",
    "Outcome",
    "SerializationFailed",
    "Source",
    "SourceReadError",
    "create_default_file",
    "get_codec",
    "load_config",
    "register_codec",
]
