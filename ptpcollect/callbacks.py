"""Callbacks that persist collected values to a file or stdout."""

from __future__ import annotations

import dataclasses
import enum
import json
import os
import sys
from dataclasses import dataclass
from typing import IO, Any

LOG_FILE_PERMISSIONS = 0o666


class OutputFormat(enum.Enum):
    """How a callback renders the values handed to it."""

    RAW = 0
    ANALYSER_JSON = 1


@dataclass
class AnalyserFormat:
    """One entry in the format consumed by the analysers."""

    id: str
    data: Any

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping of this entry."""
        return {"data": self.data, "id": self.id}


def _jsonable(obj: Any) -> Any:
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {field.name: getattr(obj, field.name) for field in dataclasses.fields(obj)}
    raise TypeError(f"cannot serialise {type(obj).__name__}")


def _marshal(obj: Any) -> str:
    return json.dumps(obj, default=_jsonable, separators=(",", ":"), ensure_ascii=False)


def get_formatted_output(callback: Any, output: Any, tag: str) -> str:
    """Render ``output`` in the format configured on ``callback``."""
    output_format = callback.output_format
    if output_format is OutputFormat.RAW:
        try:
            line = _marshal(output)
        except (TypeError, ValueError) as err:
            raise ValueError(f"failed to marshal {type(output).__name__}: {err}") from err
        return f"{type(output).__name__}:{tag}, {line}"
    if output_format is OutputFormat.ANALYSER_JSON:
        lines = []
        for entry in output.get_analyser_format():
            try:
                lines.append(_marshal(entry))
            except (TypeError, ValueError) as err:
                raise ValueError(f"failed to marshal AnalyserFormat for {tag}: {err}") from err
        return "\n".join(lines)
    raise ValueError("unknown format")


def get_file_handle(filename: str) -> IO[str]:
    """Return stdout for an empty name or "-", otherwise open ``filename`` for writing."""
    if filename in ("", "-"):
        return sys.stdout
    fd = os.open(filename, os.O_CREAT | os.O_WRONLY, LOG_FILE_PERMISSIONS)
    return os.fdopen(fd, "w")


class FileCallback:
    """Writes each formatted output as a line to a file handle."""

    def __init__(self, file_handle: IO[str], output_format: OutputFormat = OutputFormat.RAW) -> None:
        self.file_handle = file_handle
        self.output_format = output_format

    def call(self, output: Any, tag: str) -> None:
        """Format ``output`` and write it followed by a newline."""
        formatted = get_formatted_output(self, output, tag)
        self.file_handle.write(formatted + "\n")

    def cleanup(self) -> None:
        """Close the underlying file handle."""
        self.file_handle.close()

    def __enter__(self) -> FileCallback:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()


def setup_callback(filename: str, output_format: OutputFormat) -> FileCallback:
    """Create a FileCallback writing to ``filename`` (stdout for "" or "-")."""
    return FileCallback(get_file_handle(filename), output_format)