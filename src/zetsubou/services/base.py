from __future__ import annotations

import mimetypes
import os
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Tuple, Union

if TYPE_CHECKING:  # pragma: no cover
    from zetsubou.ZetsubouClient import ZetsubouClient

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# A path, raw bytes, a binary file object, or (filename, content[, content_type])
FileInput = Union[str, "os.PathLike[str]", bytes, IO[bytes], Tuple[Any, ...]]


class BaseService:
    """Base class for the resource groups hanging off a ZetsubouClient."""

    def __init__(self, client: "ZetsubouClient"):
        self.client = client

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.client!r})"


def prepare_upload(file: FileInput, default_name: str = "upload") -> Tuple[str, Any, str]:
    """Normalise a file input into the ``(filename, content, content_type)`` tuple httpx expects.

    Paths are read eagerly. File objects are passed through so httpx can
    stream them. The content type is guessed from the filename when it is
    not given.

    Raises:
        FileNotFoundError: If a path does not exist.
        TypeError: If the input is none of the accepted shapes.
    """
    content_type = None
    if isinstance(file, tuple):
        if len(file) == 3:
            filename, content, content_type = file
        elif len(file) == 2:
            filename, content = file
        else:
            raise TypeError("File tuples must be (filename, content[, content_type])")
    elif isinstance(file, (str, os.PathLike)):
        path = Path(file)
        filename, content = path.name, path.read_bytes()
    elif isinstance(file, (bytes, bytearray)):
        filename, content = default_name, bytes(file)
    elif hasattr(file, "read"):
        name = getattr(file, "name", None)
        filename = os.path.basename(name) if isinstance(name, str) else default_name
        content = file
    else:
        raise TypeError(f"Unsupported file input: {type(file).__name__}")
    content_type = content_type or mimetypes.guess_type(filename)[0] or DEFAULT_CONTENT_TYPE
    return filename, content, content_type
