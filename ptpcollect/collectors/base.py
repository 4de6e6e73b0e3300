"""Collector building blocks and the registry of collector builders."""

from __future__ import annotations

import abc
import enum
import logging
import queue
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, ClassVar

from ptpcollect.command import ExecContext

log = logging.getLogger(__name__)


class CollectorError(Exception):
    """Raised when a collector cannot be built or a collection fails."""


class Inclusion(enum.Enum):
    """Whether a collector always runs or has to be asked for."""

    REQUIRED = 0
    OPTIONAL = 1


@dataclass
class PollResult:
    """The outcome of one poll of a collector."""

    collector_name: str
    errors: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when the poll raised no errors."""
        return not self.errors


@dataclass
class CollectionConstructor:
    """Every value a collector builder may need."""

    callback: Any = None
    context: ExecContext | None = None
    errored_polls: queue.Queue[PollResult] | None = None
    ptp_interface: str = ""
    msg: str = ""
    logs_output_file: str = ""
    temp_dir: str = "."
    poll_interval: int = 1
    dev_info_announce_interval: int = 60
    include_log_timestamps: bool = False
    keep_debug_files: bool = False


class BaseCollector(abc.ABC):
    """State shared by all collectors; subclasses supply ``collect``."""

    name: ClassVar[str] = ""

    def __init__(self, poll_interval: int, is_announcer: bool, callback: Any) -> None:
        self.callback = callback
        self.is_announcer = is_announcer
        self.running = False
        self.poll_interval = timedelta(seconds=poll_interval)

    def start(self) -> None:
        """Prepare the collector for polling."""
        self.running = True

    def cleanup(self) -> None:
        """Stop the collector, leaving it able to start again."""
        self.running = False

    @abc.abstractmethod
    def collect(self) -> None:
        """Fetch one set of values and hand them to the callback."""

    def poll(self) -> PollResult:
        """Run one collection and report any error it raised."""
        errors: list[Exception] = []
        try:
            self.collect()
        except Exception as err:  # every failure is reported, not raised
            log.debug("%s poll failed: %s", self.name, err)
            errors.append(err)
        return PollResult(collector_name=self.name, errors=errors)


Builder = Callable[[CollectionConstructor], BaseCollector]


class CollectorRegistry:
    """Maps collector names to the functions that build them."""

    def __init__(self) -> None:
        self._builders: dict[str, Builder] = {}
        self._required: list[str] = []
        self._optional: list[str] = []

    def register(self, name: str, builder: Builder, inclusion: Inclusion) -> None:
        """Register ``builder`` under ``name`` as a required or optional collector."""
        if inclusion is Inclusion.REQUIRED:
            names = self._required
        elif inclusion is Inclusion.OPTIONAL:
            names = self._optional
        else:
            raise ValueError("Incorrect collector inclusion type")
        self._builders[name] = builder
        names.append(name)

    def get_builder(self, name: str) -> Builder:
        """Return the builder registered under ``name``."""
        try:
            return self._builders[name]
        except KeyError:
            raise KeyError(f"not index in registry for collector named {name}") from None

    def required_names(self) -> list[str]:
        """Names of the collectors that always run, in registration order."""
        return list(self._required)

    def optional_names(self) -> list[str]:
        """Names of the collectors that run on request, in registration order."""
        return list(self._optional)


_REGISTRY = CollectorRegistry()


def get_registry() -> CollectorRegistry:
    """The process-wide collector registry."""
    return _REGISTRY


def register_collector(name: str, builder: Builder, inclusion: Inclusion) -> None:
    """Register a builder in the process-wide registry."""
    _REGISTRY.register(name, builder, inclusion)