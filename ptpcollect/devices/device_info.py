"""Identity, driver and firmware details of a PTP network device."""

from __future__ import annotations

import calendar
import logging
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from ptpcollect.callbacks import AnalyserFormat
from ptpcollect.command import Cmd, ExecContext
from ptpcollect.devices.common import (
    NANOS_PER_SECOND,
    FetchError,
    date_command,
    fetch,
    format_rfc3339_nano,
    trimmed_command,
)

log = logging.getLogger(__name__)

_ETHTOOL_REGEX = re.compile(r"version: (.*)\nfirmware-version: (.*)\n")
_RFC3339_REGEX = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?(Z|[+-]\d{2}:\d{2})$"
)


def _parse_rfc3339_nano(text: str) -> int:
    match = _RFC3339_REGEX.match(text)
    if match is None:
        raise FetchError(f"failed to parse timestamp {text!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    nanos = int((match.group(7) or "").ljust(9, "0"))
    seconds = calendar.timegm((year, month, day, hour, minute, second, 0, 0, 0))
    zone = match.group(8)
    if zone != "Z":
        sign = 1 if zone[0] == "+" else -1
        seconds -= sign * (int(zone[1:3]) * 3600 + int(zone[4:6]) * 60)
    return seconds * NANOS_PER_SECOND + nanos


def _timedelta_to_nanos(delta: timedelta) -> int:
    return (delta // timedelta(microseconds=1)) * 1000


@dataclass
class PTPDeviceInfo:
    """Details of the device behind a PTP interface."""

    timestamp: str = ""
    vendor_id: str = ""
    device_id: str = ""
    gnss_dev: str = ""
    firmware_version: str = ""
    driver_version: str = ""
    time_offset: timedelta = field(default_factory=timedelta)

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {
            "date": self.timestamp,
            "vendorId": self.vendor_id,
            "deviceInfo": self.device_id,
            "GNSSDev": self.gnss_dev,
            "firmwareVersion": self.firmware_version,
            "driverVersion": self.driver_version,
            "timeOffset": _timedelta_to_nanos(self.time_offset),
        }

    def get_analyser_format(self) -> list[AnalyserFormat]:
        """Return the entries expected by the analysers."""
        now = time.time_ns() + _timedelta_to_nanos(self.time_offset)
        return [
            AnalyserFormat(
                id="devInfo",
                data={
                    "timestamp": format_rfc3339_nano(now),
                    "fetched_timestamp": self.timestamp,
                    "vendorID": self.vendor_id,
                    "devID": self.device_id,
                    "gnss": self.gnss_dev,
                    "firmwareVersion": self.firmware_version,
                    "driverVersion": self.driver_version,
                },
            )
        ]


def extract_ethtool_info(text: str) -> dict[str, str]:
    """Pull the driver and firmware versions out of ``ethtool -i`` output."""
    match = _ETHTOOL_REGEX.search(text)
    if match is None:
        raise FetchError(f"failed to extract ethtoolOut from {text}")
    return {"driverVersion": match.group(1), "firmwareVersion": match.group(2)}


def _process_gnss_path(text: str) -> str:
    return "/dev/" + text.strip()


def build_ptp_device_commands(interface_name: str) -> list[Cmd]:
    """The commands that collect the device info for ``interface_name``."""
    return [
        date_command(),
        Cmd(
            "gnss",
            f"ls /sys/class/net/{interface_name}/device/gnss/",
            output_processor=_process_gnss_path,
        ),
        trimmed_command("devID", f"cat /sys/class/net/{interface_name}/device/device"),
        trimmed_command("vendorID", f"cat /sys/class/net/{interface_name}/device/vendor"),
        trimmed_command("ethtoolOut", f"ethtool -i {interface_name}"),
    ]


def _post_process(result: Mapping[str, str]) -> dict[str, Any]:
    fetched = _parse_rfc3339_nano(result["date"])
    offset = timedelta(microseconds=(time.time_ns() - fetched) / 1000)
    processed: dict[str, Any] = {"timeOffset": offset}
    processed.update(extract_ethtool_info(result["ethtoolOut"]))
    return processed


def get_ptp_device_info(interface_name: str, ctx: ExecContext) -> PTPDeviceInfo:
    """Fetch the PTPDeviceInfo for ``interface_name``."""
    try:
        values = fetch(ctx, build_ptp_device_commands(interface_name), _post_process)
    except FetchError as err:
        log.debug("failed to fetch devInfo %s", err)
        raise FetchError(f"failed to fetch devInfo {err}") from err
    return PTPDeviceInfo(
        timestamp=values["date"],
        vendor_id=values["vendorID"],
        device_id=values["devID"],
        gnss_dev=values["gnss"],
        firmware_version=values["firmwareVersion"],
        driver_version=values["driverVersion"],
        time_offset=values["timeOffset"],
    )