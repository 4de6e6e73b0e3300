"""DPLL state read from the device's sysfs entries."""

from __future__ import annotations

import logging
import struct
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ptpcollect.callbacks import AnalyserFormat
from ptpcollect.command import Cmd, ExecContext
from ptpcollect.devices.common import FetchError, date_command, fetch, trimmed_command

log = logging.getLogger(__name__)

UNIT_CONVERSION_FACTOR = 100
_EXPECTED_PATHS = ("dpll_0_state", "dpll_1_state", "dpll_1_offset")


@dataclass
class DevFilesystemDPLLInfo:
    """DPLL states and phase offset of a device."""

    timestamp: str = ""
    eec_state: str = ""
    pps_state: str = ""
    pps_offset: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {
            "timestamp": self.timestamp,
            "eecstate": self.eec_state,
            "state": self.pps_state,
            "terror": self.pps_offset,
        }

    def get_analyser_format(self) -> list[AnalyserFormat]:
        """Return the entries expected by the analysers."""
        return [
            AnalyserFormat(
                id="dpll/time-error",
                data={
                    "timestamp": self.timestamp,
                    "eecstate": self.eec_state,
                    "state": self.pps_state,
                    "terror": self.pps_offset / UNIT_CONVERSION_FACTOR,
                },
            )
        ]


def _parse_float32(text: str) -> float:
    value = float(text)
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError as err:
        raise ValueError(f"{text} out of range") from err


def _post_process(result: Mapping[str, str]) -> dict[str, Any]:
    try:
        offset = _parse_float32(result["dpll_1_offset"])
    except ValueError as err:
        raise FetchError(f"failed converting dpll_1_offset {err} to an int") from err
    return {"dpll_1_offset": offset}


def build_dpll_filesystem_commands(interface_name: str) -> list[Cmd]:
    """The commands that read the DPLL sysfs entries of ``interface_name``."""
    base = f"/sys/class/net/{interface_name}/device"
    return [date_command()] + [
        trimmed_command(name, f"cat {base}/{name}") for name in _EXPECTED_PATHS
    ]


def get_dev_dpll_filesystem_info(ctx: ExecContext, interface_name: str) -> DevFilesystemDPLLInfo:
    """Fetch the DPLL info for ``interface_name`` from sysfs."""
    try:
        values = fetch(ctx, build_dpll_filesystem_commands(interface_name), _post_process)
    except FetchError as err:
        log.debug("failed to fetch dpllInfo %s", err)
        raise FetchError(f"failed to fetch dpllInfo {err}") from err
    return DevFilesystemDPLLInfo(
        timestamp=values["date"],
        eec_state=values["dpll_0_state"],
        pps_state=values["dpll_1_state"],
        pps_offset=values["dpll_1_offset"],
    )


def is_dpll_filesystem_present(ctx: ExecContext, interface_name: str) -> bool:
    """Whether all the DPLL sysfs entries exist for ``interface_name``."""
    cmd = trimmed_command("paths", f"ls -1 /sys/class/net/{interface_name}/device/")
    try:
        values = fetch(ctx, [cmd])
    except FetchError as err:
        raise FetchError(f"failed to check DPLL FS {err}") from err
    present = {line.strip(" ") for line in values["paths"].split("\n")}
    return all(path in present for path in _EXPECTED_PATHS)