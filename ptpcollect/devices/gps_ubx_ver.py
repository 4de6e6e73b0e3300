"""Versions of the GNSS receiver firmware and of the GNSS tools."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ptpcollect.callbacks import AnalyserFormat
from ptpcollect.command import Cmd, ExecContext
from ptpcollect.devices.common import (
    FetchError,
    fetch,
    format_rfc3339_nano,
    parse_timestamp,
    trimmed_command,
)
from ptpcollect.devices.gps_ubx import TIMESTAMP_PATTERN

log = logging.getLogger(__name__)

_FIRMWARE_VERSION_REGEX = re.compile(
    TIMESTAMP_PATTERN
    + r"\nUBX-MON-VER:"
    r"\n\s+swVersion (.*)"
    r"\n\s+hwVersion (.*)"
    r"\n\s+((?:extension .*(?:\n\s+)?)+)",
    re.ASCII,
)
_FW_VERSION_EXTENSION = re.compile(r"extension FWVER=(.*)")
_PROTO_VERSION_EXTENSION = re.compile(r"extension PROTVER=(.*)")
_MODULE_EXTENSION = re.compile(r"extension MOD=(.*)")
_UBX_VERSION = re.compile(r"ubxtool: Version (.*)")
_GPSD_VERSION = re.compile(r"gpsd: (.* \(revision .*\))")


@dataclass
class GPSVersions:
    """Firmware, protocol and tool versions of the GNSS setup."""

    timestamp: str = ""
    firmware_version: str = ""
    proto_version: str = ""
    module: str = ""
    ubx_version: str = ""
    gpsd_version: str = ""
    gnss_devices: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {
            "timestamp": self.timestamp,
            "firmwareVersion": self.firmware_version,
            "protocolVersion": self.proto_version,
            "module": self.module,
            "ubxVersion": self.ubx_version,
            "gpsdVersion": self.gpsd_version,
            "gnssDevices": list(self.gnss_devices),
        }

    def get_analyser_format(self) -> list[AnalyserFormat]:
        """Return the entries expected by the analysers."""
        return [AnalyserFormat(id="gnss/time-error", data=self)]


def find_first_capture_group(text: str, pattern: re.Pattern[str], name: str) -> str:
    """Return the first capture group of ``pattern`` in ``text``."""
    match = pattern.search(text)
    if match is None:
        raise FetchError(f"unable to parse version from {name} in {text}")
    return match.group(1)


def _parse_extensions(mon_ver: str) -> dict[str, Any]:
    match = _FIRMWARE_VERSION_REGEX.search(mon_ver)
    if match is None:
        raise FetchError(f"unable to parse UBX MON Version from {mon_ver}")
    try:
        timestamp = format_rfc3339_nano(parse_timestamp(match.group(1)))
    except ValueError as err:
        raise FetchError(f"failed to parse versionTimestamp {err}") from err
    extensions = match.group(4)
    return {
        "timestamp": timestamp,
        "firmwareVersion": find_first_capture_group(extensions, _FW_VERSION_EXTENSION, "extension"),
        "protocolVersion": find_first_capture_group(
            extensions, _PROTO_VERSION_EXTENSION, "extension"
        ),
        "module": find_first_capture_group(extensions, _MODULE_EXTENSION, "extension"),
    }


def parse_gps_versions(results: Mapping[str, str]) -> dict[str, Any]:
    """Extract the versions from the raw command results."""
    processed = _parse_extensions(results["UBXMonVer"])
    processed["UBXVersion"] = find_first_capture_group(
        results["UBXVersion"], _UBX_VERSION, "ubxtools version"
    )
    processed["GPSDVersion"] = find_first_capture_group(
        results["GPSDVersion"], _GPSD_VERSION, "gpsd version"
    )
    processed["GNSSDevices"] = [
        "/dev/" + dev.strip() for dev in results["GNSSDevices"].split("\n") if dev.strip()
    ]
    return processed


def _version_commands() -> list[Cmd]:
    return [
        trimmed_command("UBXMonVer", "ubxtool -t -p MON-VER -P 29.20"),
        trimmed_command("UBXVersion", "ubxtool -V"),
        trimmed_command("GPSDVersion", "gpsd --version"),
        trimmed_command("GNSSDevices", "ls -1 /dev | grep gnss"),
    ]


def get_gps_versions(ctx: ExecContext) -> GPSVersions:
    """Fetch the GNSS versions of the host."""
    try:
        values = fetch(ctx, _version_commands(), parse_gps_versions)
    except FetchError as err:
        log.debug("failed to fetch gpsVer %s", err)
        raise FetchError(f"failed to fetch gpsVer {err}") from err
    return GPSVersions(
        timestamp=values["timestamp"],
        firmware_version=values["firmwareVersion"],
        proto_version=values["protocolVersion"],
        module=values["module"],
        ubx_version=values["UBXVersion"],
        gpsd_version=values["GPSDVersion"],
        gnss_devices=values["GNSSDevices"],
    )