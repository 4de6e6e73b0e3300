"""Collectors for grandmaster settings, GNSS navigation and sysfs DPLL state."""

from __future__ import annotations

from typing import Any

from ptpcollect.collectors.base import (
    BaseCollector,
    CollectionConstructor,
    CollectorError,
    CollectorRegistry,
    Inclusion,
    PollResult,
    get_registry,
)
from ptpcollect.command import ExecContext
from ptpcollect.devices.dpll_fs import get_dev_dpll_filesystem_info
from ptpcollect.devices.gps_ubx import get_gps_nav
from ptpcollect.devices.pmc import get_pmc

PTP_NAMESPACE = "openshift-ptp"
PTP_POD_NAME_PREFIX = "linuxptp-daemon-"
PTP_CONTAINER = "linuxptp-daemon-container"
GPS_CONTAINER = "gpsd"

PMC_COLLECTOR_NAME = "PMC"
PMC_INFO = "pmc-info"
GPS_COLLECTOR_NAME = "GNSS"
GPS_NAV_KEY = "gpsNav"
DPLL_FILESYSTEM_COLLECTOR_NAME = "DPLL-Filesystem"
DPLL_INFO = "dpll-info-fs"


def _ptp_daemon_context(constructor: CollectionConstructor, what: str) -> ExecContext:
    if constructor.context is None:
        raise CollectorError(
            f"failed to create {what}: could not create container context"
            f" for {PTP_CONTAINER} in {PTP_NAMESPACE}"
        )
    return constructor.context


def _report(callback: Any, output: Any, tag: str) -> None:
    try:
        callback.call(output, tag)
    except Exception as err:
        raise CollectorError(f"callback failed {err}") from err


class PMCCollector(BaseCollector):
    """Polls the grandmaster settings reported by pmc."""

    name = PMC_COLLECTOR_NAME

    def __init__(self, poll_interval: int, callback: Any, ctx: ExecContext) -> None:
        super().__init__(poll_interval, False, callback)
        self.ctx = ctx

    def collect(self) -> None:
        """Fetch the grandmaster settings and hand them to the callback."""
        try:
            settings = get_pmc(self.ctx)
        except Exception as err:
            raise CollectorError(f"failed to fetch  {PMC_INFO} {err}") from err
        _report(self.callback, settings, PMC_INFO)

    def poll(self) -> PollResult:
        """Collect once and report any error in the result."""
        return super().poll()


class GPSCollector(BaseCollector):
    """Polls the GNSS navigation status, clock and antenna details."""

    name = GPS_COLLECTOR_NAME

    def __init__(
        self, poll_interval: int, callback: Any, ctx: ExecContext, interface_name: str
    ) -> None:
        super().__init__(poll_interval, False, callback)
        self.ctx = ctx
        self.interface_name = interface_name

    def collect(self) -> None:
        """Fetch the GNSS details and hand them to the callback."""
        try:
            details = get_gps_nav(self.ctx)
        except Exception as err:
            raise CollectorError(f"failed to fetch  {GPS_NAV_KEY} {err}") from err
        _report(self.callback, details, GPS_NAV_KEY)

    def poll(self) -> PollResult:
        """Collect once and report any error in the result."""
        return super().poll()


class DPLLFilesystemCollector(BaseCollector):
    """Polls the DPLL state exposed in the device's sysfs entries."""

    name = DPLL_FILESYSTEM_COLLECTOR_NAME

    def __init__(
        self, poll_interval: int, callback: Any, ctx: ExecContext, interface_name: str
    ) -> None:
        super().__init__(poll_interval, False, callback)
        self.ctx = ctx
        self.interface_name = interface_name

    def collect(self) -> None:
        """Fetch the DPLL info and hand it to the callback."""
        try:
            info = get_dev_dpll_filesystem_info(self.ctx, self.interface_name)
        except Exception as err:
            raise CollectorError(f"failed to fetch {DPLL_INFO} {err}") from err
        _report(self.callback, info, DPLL_INFO)

    def poll(self) -> PollResult:
        """Collect once and report any error in the result."""
        return super().poll()


def new_pmc_collector(constructor: CollectionConstructor) -> PMCCollector:
    """Build a PMCCollector from ``constructor``."""
    ctx = _ptp_daemon_context(constructor, "PMCCollector")
    return PMCCollector(constructor.poll_interval, constructor.callback, ctx)


def new_gps_collector(constructor: CollectionConstructor) -> GPSCollector:
    """Build a GPSCollector from ``constructor``."""
    ctx = _ptp_daemon_context(constructor, "GPSCollector")
    return GPSCollector(
        constructor.poll_interval, constructor.callback, ctx, constructor.ptp_interface
    )


def new_dpll_filesystem_collector(constructor: CollectionConstructor) -> DPLLFilesystemCollector:
    """Build a DPLLFilesystemCollector from ``constructor``."""
    ctx = _ptp_daemon_context(constructor, "DPLLFilesystemCollector")
    return DPLLFilesystemCollector(
        constructor.poll_interval, constructor.callback, ctx, constructor.ptp_interface
    )


def register_builtin_collectors(registry: CollectorRegistry | None = None) -> CollectorRegistry:
    """Register the optional PMC and GNSS collectors; returns the registry used."""
    target = registry if registry is not None else get_registry()
    target.register(PMC_COLLECTOR_NAME, new_pmc_collector, Inclusion.OPTIONAL)
    target.register(GPS_COLLECTOR_NAME, new_gps_collector, Inclusion.OPTIONAL)
    return target