from datetime import timedelta

import pytest

from ptpcollect.collectors.base import (
    BaseCollector,
    CollectionConstructor,
    CollectorRegistry,
    Inclusion,
    PollResult,
    get_registry,
    register_collector,
)


class _Boom(Exception):
    pass


class _CountingCollector(BaseCollector):
    name = "Counting"

    def __init__(self, poll_interval, callback, fail=False):
        super().__init__(poll_interval, False, callback)
        self.fail = fail
        self.calls = 0

    def collect(self):
        self.calls += 1
        if self.fail:
            raise _Boom("went wrong")
        self.callback.append(self.calls)


def _build(constructor):
    return _CountingCollector(constructor.poll_interval, [])


def _build_failing(constructor):
    return _CountingCollector(constructor.poll_interval, [], fail=True)


def test_poll_interval_is_in_seconds():
    registry = CollectorRegistry()
    registry.register("Counting", _build, Inclusion.OPTIONAL)
    collector = registry.get_builder("Counting")(CollectionConstructor(poll_interval=7))
    assert collector.poll_interval == timedelta(seconds=7)
    assert collector.is_announcer is False


def test_start_and_cleanup_toggle_running():
    registry = CollectorRegistry()
    registry.register("Counting", _build, Inclusion.OPTIONAL)
    collector = registry.get_builder("Counting")(CollectionConstructor(poll_interval=1))
    assert collector.running is False
    collector.start()
    assert collector.running is True
    collector.cleanup()
    assert collector.running is False


def test_successful_poll_reports_no_errors():
    sink = []
    collector = _CountingCollector(1, sink)
    result = collector.poll()
    assert result == PollResult(collector_name="Counting", errors=[])
    assert result.ok
    assert sink == [1]


def test_failed_poll_collects_the_error():
    registry = CollectorRegistry()
    registry.register("Failing", _build_failing, Inclusion.OPTIONAL)
    collector = registry.get_builder("Failing")(CollectionConstructor(poll_interval=1))
    result = collector.poll()
    assert result.collector_name == "Counting"
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], _Boom)
    assert not result.ok


def test_constructor_defaults():
    constructor = CollectionConstructor()
    assert constructor.poll_interval == 1
    assert constructor.dev_info_announce_interval == 60
    assert constructor.temp_dir == "."
    assert constructor.context is None


def test_registry_keeps_inclusion_lists_in_order():
    registry = CollectorRegistry()
    registry.register("A", _build, Inclusion.OPTIONAL)
    registry.register("B", _build, Inclusion.REQUIRED)
    registry.register("C", _build, Inclusion.OPTIONAL)
    assert registry.required_names() == ["B"]
    assert registry.optional_names() == ["A", "C"]
    assert registry.get_builder("C") is _build


def test_registry_builder_builds_collector():
    registry = CollectorRegistry()
    registry.register("A", _build, Inclusion.OPTIONAL)
    collector = registry.get_builder("A")(CollectionConstructor(poll_interval=3))
    assert collector.poll_interval == timedelta(seconds=3)


def test_unknown_collector_raises():
    registry = CollectorRegistry()
    with pytest.raises(KeyError, match="Missing"):
        registry.get_builder("Missing")


def test_bad_inclusion_raises():
    registry = CollectorRegistry()
    with pytest.raises(ValueError):
        registry.register("A", _build, "sometimes")
    assert registry.required_names() == [] and registry.optional_names() == []


def test_name_lists_are_copies():
    registry = CollectorRegistry()
    registry.register("A", _build, Inclusion.REQUIRED)
    registry.required_names().append("X")
    assert registry.required_names() == ["A"]


def test_global_registry():
    assert get_registry() is get_registry()
    register_collector("TestBaseGlobal", _build, Inclusion.OPTIONAL)
    assert "TestBaseGlobal" in get_registry().optional_names()
    assert get_registry().get_builder("TestBaseGlobal") is _build