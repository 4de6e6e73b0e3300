"""Shared helpers for fetching device values through an exec context."""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from ptpcollect.command import Cmd, CmdGroup, CommandError, ExecContext

log = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000
_SHELL = ["/usr/bin/sh"]
_EPOCH_PATTERN = re.compile(r"^(-?\d+)(?:\.(\d+))?$")

PostProcessor = Callable[[Mapping[str, str]], Mapping[str, Any]]


class FetchError(Exception):
    """Raised when values cannot be fetched or processed."""


def parse_timestamp(text: str) -> int:
    """Parse "seconds[.fraction]" since the epoch into integer nanoseconds."""
    match = _EPOCH_PATTERN.match(text.strip())
    if match is None:
        raise ValueError(f"failed to parse timestamp {text!r}")
    seconds = int(match.group(1))
    fraction = (match.group(2) or "")[:9].ljust(9, "0")
    nanos = int(fraction)
    if seconds < 0 or match.group(1).startswith("-"):
        return seconds * NANOS_PER_SECOND - nanos
    return seconds * NANOS_PER_SECOND + nanos


def format_rfc3339_nano(moment: int) -> str:
    """Format integer nanoseconds since the epoch as an RFC 3339 UTC string.

    Trailing zeros of the fractional second are dropped, and the fraction is
    omitted entirely when it is zero.
    """
    seconds, nanos = divmod(moment, NANOS_PER_SECOND)
    text = datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    if nanos:
        text += "." + f"{nanos:09d}".rstrip("0")
    return text + "Z"


def _format_timestamp_output(text: str) -> str:
    return format_rfc3339_nano(parse_timestamp(text.strip()))


@functools.lru_cache(maxsize=None)
def date_command() -> Cmd:
    """The shared command reading the host clock, formatted as RFC 3339."""
    return Cmd("date", "date +%s.%N", output_processor=_format_timestamp_output)


def trimmed_command(key: str, command: str) -> Cmd:
    """A command whose output has surrounding whitespace removed."""
    return Cmd(key, command, output_processor=str.strip)


def fetch(
    ctx: ExecContext,
    commands: Iterable[Cmd],
    post_processor: PostProcessor | None = None,
) -> dict[str, Any]:
    """Run ``commands`` in one shell call and return their values by key.

    Values returned by ``post_processor`` are merged over the raw results.
    """
    group = CmdGroup(commands)
    try:
        stdout, _stderr = ctx.exec_command(_SHELL, stdin=group.command)
    except Exception as err:
        raise FetchError(f"failed to run command: {err}") from err
    try:
        results: dict[str, Any] = dict(group.extract_result(stdout))
    except CommandError as err:
        raise FetchError(f"failed to extract results: {err}") from err
    if post_processor is not None:
        try:
            processed = post_processor(results)
        except FetchError:
            raise
        except Exception as err:
            raise FetchError(f"failed to post-process results: {err}") from err
        results.update(processed)
    return results