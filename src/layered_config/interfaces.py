from __future__ import annotations

from typing import Callable, Protocol

from layered_config.models import LoadEvent, LoadRequest, Outcome, T

ConfirmCallback = Callable[[str], bool]


class LoadObserver(Protocol):
    def on_event(self, event: LoadEvent) -> None:
        """Receive a structured loader event. Must not raise."""


class ConfigLoader(Protocol[T]):
    """
    Loads one typed configuration value from an ordered list of sources.

    Earlier sources win. A missing required field may bootstrap the request's
    fallback file, reported as `CreatedDefaultFile` instead of a value.
    """

    def load(self, request: LoadRequest = LoadRequest()) -> Outcome[T]:
        ...
