from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Generic, Mapping, MutableMapping, Optional, Sequence

from pydantic import BaseModel, ValidationError

from layered_config.bootstrap import create_default_file
from layered_config.codecs import get_codec
from layered_config.errors import (
    BootstrapError,
    CodecError,
    ConfigLoadError,
    ExtractionError,
    MissingFieldError,
    SourceReadError,
)
from layered_config.interfaces import ConfirmCallback, LoadObserver
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
    T,
    default_instance,
)


def _join_dicts(view: MutableMapping[str, Any], fragment: Mapping[str, Any]) -> None:
    """Insert `fragment` beneath `view`: keys already in `view` keep their values."""
    for k, v in fragment.items():
        if k not in view:
            view[k] = copy.deepcopy(v)
            continue
        if isinstance(v, Mapping) and isinstance(view[k], MutableMapping):
            _join_dicts(view[k], v)  # type: ignore[arg-type]


def _field_keys(model: type[BaseModel]) -> set[str]:
    keys: set[str] = set()
    for name, info in model.model_fields.items():
        keys.add(name)
        if info.alias:
            keys.add(info.alias)
        if isinstance(info.validation_alias, str):
            keys.add(info.validation_alias)
    return keys


def _parse_env_value(raw: str) -> Any:
    # Lists and tables can be passed as JSON; everything else is left to the model's coercion.
    if raw.lstrip().startswith(("[", "{")):
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def _variables_fragment(
    model: type[BaseModel],
    variables: Mapping[str, Optional[str]],
    *,
    prefix: str,
    nested_delimiter: Optional[str],
) -> dict[str, Any]:
    field_keys = _field_keys(model)
    fragment: dict[str, Any] = {}
    for name in sorted(variables):
        raw = variables[name]
        if raw is None:
            continue
        if prefix:
            if not name.startswith(prefix):
                continue
            name = name[len(prefix) :]

        segments = name.split(nested_delimiter) if nested_delimiter else [name]
        if segments[0] not in field_keys or not all(segments):
            continue

        parent: dict[str, Any] = fragment
        for segment in segments[:-1]:
            child = parent.setdefault(segment, {})
            if not isinstance(child, dict):
                break
            parent = child
        else:
            parent.setdefault(segments[-1], _parse_env_value(raw))
    return fragment


def _read_dotenv(path: Path) -> Mapping[str, Optional[str]]:
    try:
        from dotenv import dotenv_values  # type: ignore[import-not-found]
    except ModuleNotFoundError as e:  # pragma: no cover
        raise ModuleNotFoundError(
            "Missing dependency: python-dotenv is required to load .env. Install 'python-dotenv'."
        ) from e

    if not path.exists():
        return {}
    return dotenv_values(dotenv_path=path)


def _read_file_source(source: FileSource) -> dict[str, Any]:
    path = Path(source.path)
    if not source.required and not path.exists():
        return {}
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SourceReadError(path, e) from e
    try:
        return get_codec(source.format).decode(data)
    except (ValueError, TypeError) as e:
        raise CodecError(source.format, path, e) from e


def _missing_fields(error: ValidationError) -> Optional[list[str]]:
    details = error.errors()
    if not details or any(d["type"] != "missing" for d in details):
        return None
    return [".".join(str(part) for part in d["loc"]) for d in details]


class _NullObserver:
    def on_event(self, event: LoadEvent) -> None:
        return None


class LayeredConfigLoader(Generic[T]):
    def __init__(
        self,
        model: type[T],
        *,
        observer: Optional[LoadObserver] = None,
        confirm: Optional[ConfirmCallback] = None,
    ) -> None:
        self._model = model
        self._observer: LoadObserver = observer or _NullObserver()
        self._confirm = confirm

    @property
    def model(self) -> type[T]:
        return self._model

    def load(self, request: LoadRequest = LoadRequest()) -> Outcome[T]:
        try:
            value = self._extract(self._merge(request))
        except MissingFieldError as e:
            self._emit("config.load_failed", error=str(e), missing=list(e.fields))
            if request.fallback is None:
                return Failure(e)
            return self._bootstrap(request.fallback, e)
        except ConfigLoadError as e:
            self._emit("config.load_failed", error=str(e))
            return Failure(e)

        self._emit("config.loaded", value=repr(value))
        return LoadedValue(value)

    def _merge(self, request: LoadRequest) -> dict[str, Any]:
        view: dict[str, Any] = {}
        environ: Optional[dict[str, str]] = None
        for source in request.sources:
            if isinstance(source, Environment) and environ is None:
                environ = dict(os.environ if request.environ is None else request.environ)
            fragment = self._fragment(source, environ if environ is not None else {})
            self._emit("config.source_loaded", source=repr(source), keys=sorted(fragment))
            _join_dicts(view, fragment)
        return view

    def _fragment(self, source: Source, environ: Mapping[str, str]) -> dict[str, Any]:
        if isinstance(source, Defaults):
            try:
                return default_instance(self._model).model_dump(mode="python", by_alias=True)
            except ValidationError as e:
                raise ExtractionError(self._model.__name__, e) from e
        if isinstance(source, Environment):
            return _variables_fragment(
                self._model,
                environ,
                prefix=source.prefix,
                nested_delimiter=source.nested_delimiter,
            )
        if isinstance(source, Dotenv):
            return _variables_fragment(
                self._model,
                _read_dotenv(Path(source.path)),
                prefix=source.prefix,
                nested_delimiter=source.nested_delimiter,
            )
        if isinstance(source, FileSource):
            return _read_file_source(source)
        raise TypeError(f"Unsupported config source: {source!r}")

    def _extract(self, document: Mapping[str, Any]) -> T:
        try:
            return self._model.model_validate(document)
        except ValidationError as e:
            fields = _missing_fields(e)
            if fields is not None:
                raise MissingFieldError(self._model.__name__, e, fields) from e
            raise ExtractionError(self._model.__name__, e) from e

    def _bootstrap(self, fallback: FileSource, missing: MissingFieldError) -> Outcome[T]:
        try:
            created = create_default_file(self._model, fallback, confirm=self._confirm)
        except BootstrapError as e:
            self._emit("config.load_failed", error=str(e))
            return Failure(e)

        if created is None:
            reason = "exists" if Path(fallback.path).exists() else "declined"
            self._emit("config.default_file_skipped", path=fallback.path, reason=reason)
            return Failure(missing)

        self._emit("config.default_file_created", path=str(created))
        return CreatedDefaultFile(created)

    def _emit(self, name: str, **fields: Any) -> None:
        self._observer.on_event(LoadEvent(name=name, fields=fields))


def load_config(
    model: type[T],
    sources: Sequence[Source] = (Defaults(),),
    fallback: Optional[FileSource] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    observer: Optional[LoadObserver] = None,
    confirm: Optional[ConfirmCallback] = None,
) -> Outcome[T]:
    """Load `model` from `sources`, earlier sources winning, bootstrapping `fallback` if needed."""
    loader = LayeredConfigLoader(model, observer=observer, confirm=confirm)
    return loader.load(LoadRequest(sources=tuple(sources), fallback=fallback, environ=environ))
