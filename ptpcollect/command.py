"""Shell commands whose output is delimited by key markers."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

log = logging.getLogger(__name__)


class CommandError(Exception):
    """Raised when a command cannot be built or its result cannot be extracted."""


class ExecContext(Protocol):
    """Something that runs a command in a container and returns (stdout, stderr)."""

    def exec_command(self, command: Sequence[str], stdin: str | None = None) -> tuple[str, str]:
        """Run ``command``, feeding ``stdin`` when given, and return (stdout, stderr)."""
        raise NotImplementedError


class Cmd:
    """A shell command wrapped in echo markers so its output can be found by key."""

    def __init__(
        self,
        key: str,
        cmd: str,
        output_processor: Callable[[str], str] | None = None,
    ) -> None:
        if not cmd:
            raise CommandError(f"empty command for key {key}")
        self.key = key
        self.cmd = cmd
        self.output_processor = output_processor
        self.prefix = f"echo '<{key}>'"
        self.suffix = f"echo '</{key}>'"
        body = cmd if cmd.endswith(";") else cmd + ";"
        self._full_cmd = f"{self.prefix};{body}{self.suffix};"
        try:
            self._regex = re.compile("<" + key + ">\n(.*)\n</" + key + ">", re.DOTALL)
        except re.error as err:
            raise CommandError(f"failed to compile regex for key {key}: {err}") from err

    @property
    def command(self) -> str:
        """The full shell command including the markers."""
        return self._full_cmd

    def extract_result(self, text: str) -> dict[str, str]:
        """Find this command's output in ``text`` and return it under the key."""
        log.debug("extract %s from %s", self.key, text)
        match = self._regex.search(text)
        if match is None:
            raise CommandError(f"failed to find result for key: {self.key}")
        value = match.group(1)
        if self.output_processor is not None:
            try:
                value = self.output_processor(value)
            except Exception as err:
                raise CommandError(
                    f"failed to cleanup value {match.group(1)} of key {self.key}"
                ) from err
        return {self.key: value}


class CmdGroup:
    """A sequence of commands run as one shell invocation."""

    def __init__(self, cmds: Iterable[Cmd] | None = None) -> None:
        self.cmds: list[Cmd] = list(cmds) if cmds is not None else []

    def add_command(self, cmd: Cmd) -> None:
        """Append ``cmd`` to the group."""
        self.cmds.append(cmd)

    @property
    def command(self) -> str:
        """The concatenated shell command of every member."""
        return "".join(cmd.command for cmd in self.cmds)

    def extract_result(self, text: str) -> dict[str, str]:
        """Extract every member's result; raises on the first missing one."""
        results: dict[str, str] = {}
        for cmd in self.cmds:
            results.update(cmd.extract_result(text))
        return results