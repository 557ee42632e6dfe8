from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from layered_config.codecs import get_codec
from layered_config.errors import BootstrapIOError, SerializationFailed
from layered_config.interfaces import ConfirmCallback
from layered_config.models import FileSource, default_instance


def create_default_file(
    model: type[BaseModel],
    fallback: FileSource,
    *,
    confirm: Optional[ConfirmCallback] = None,
) -> Optional[Path]:
    """
    Write the model's default value to `fallback` unless a file is already there.

    Returns the created path, or None when the file already exists or `confirm`
    declined. Raises `SerializationFailed` or `BootstrapIOError`.
    """
    path = Path(fallback.path)
    if path.exists():
        return None
    if confirm is not None and not confirm(fallback.path):
        return None

    try:
        document = default_instance(model).model_dump(mode="json", by_alias=True)
        content = get_codec(fallback.format).encode_pretty(document).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationFailed(fallback.format, path, e) from e

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BootstrapIOError(path, e, operation="create_dirs") from e

    # "x" fails if the file appeared after the exists() check above
    try:
        handle = path.open("xb")
    except OSError as e:
        raise BootstrapIOError(path, e, operation="create") from e

    try:
        with handle:
            handle.write(content)
    except OSError as e:
        # no partial file may survive a failed write
        path.unlink(missing_ok=True)
        raise BootstrapIOError(path, e, operation="write") from e
    return path
