"""DPLL lock states read through the netlink command-line client."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ptpcollect.callbacks import AnalyserFormat
from ptpcollect.command import Cmd, ExecContext
from ptpcollect.devices.common import FetchError, date_command, fetch, trimmed_command

log = logging.getLogger(__name__)

STATES: dict[str, str] = {
    "unknown": "-1",
    "invalid": "0",
    "freerun": "1",
    "locked": "2",
    "locked-ho-acq": "3",
    "holdover": "4",
}
UNKNOWN_STATE = "-1"

NETLINK_KEY = "dpll-netlink"
SERIAL_NUMBER_KEY = "dpll-netlink-serial-number"
_NETLINK_COMMAND = (
    "/linux/tools/net/ynl/cli.py --spec /linux/Documentation/netlink/specs/dpll.yaml"
    " --dump device-get"
)
_HEX_PATTERN = re.compile(r"^[+-]?[0-9a-fA-F]+$")


@dataclass
class DevNetlinkDPLLInfo:
    """EEC and PPS DPLL states of a clock."""

    timestamp: str = ""
    eec_state: str = ""
    pps_state: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {
            "timestamp": self.timestamp,
            "eecstate": self.eec_state,
            "state": self.pps_state,
        }

    def get_analyser_format(self) -> list[AnalyserFormat]:
        """Return the entries expected by the analysers."""
        return [
            AnalyserFormat(
                id="dpll/states",
                data={
                    "timestamp": self.timestamp,
                    "eecstate": self.eec_state,
                    "state": self.pps_state,
                },
            )
        ]


@dataclass
class NetlinkClockID:
    """The clock id of a device, derived from its PCI serial number."""

    clock_id: int
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {"clockId": self.clock_id, "timestamp": self.timestamp}


def _load_entries(output: str) -> list[dict[str, Any]]:
    try:
        entries = json.loads(output.replace("'", '"'))
    except ValueError as err:
        log.error("Failed to unmarshal netlink output: %s", err)
        return []
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        log.error("Failed to unmarshal netlink output: expected a list of objects")
        return []
    return entries


def parse_netlink_states(output: str, clock_id: int) -> dict[str, str]:
    """Map each DPLL type of ``clock_id`` to its numeric lock state.

    Output that cannot be decoded is logged and yields no states.
    """
    states: dict[str, str] = {}
    entries = _load_entries(output)
    log.debug("entries: %s", entries)
    for entry in entries:
        entry_clock = entry.get("clock-id")
        if not isinstance(entry_clock, int) or entry_clock != clock_id:
            continue
        lock_status = entry.get("lock-status", "")
        state = STATES.get(lock_status)
        if state is None:
            log.error("Unknown state: %s", lock_status)
            state = UNKNOWN_STATE
        states[str(entry.get("type", ""))] = state
    return states


def parse_clock_id(serial_number: str) -> int:
    """Parse a hexadecimal serial number into a clock id."""
    if _HEX_PATTERN.match(serial_number) is None:
        raise FetchError(f"failed to parse int for clock id from serial number: {serial_number}")
    return int(serial_number, 16)


def _clock_id_commands(interface_name: str) -> list[Cmd]:
    return [
        date_command(),
        trimmed_command(
            SERIAL_NUMBER_KEY,
            f"export IFNAME={interface_name}; export BUSID=$(readlink /sys/class/net/$IFNAME/device"
            " | xargs basename | cut -d ':' -f 2,3);"
            " echo $(lspci -v | grep $BUSID -A 20 |grep 'Serial Number'"
            " | awk '{print $NF}' | tr -d '-')",
        ),
    ]


def get_dev_dpll_netlink_info(ctx: ExecContext, clock_id: int) -> DevNetlinkDPLLInfo:
    """Fetch the DPLL states of ``clock_id`` over netlink."""

    def post_process(result: Mapping[str, str]) -> dict[str, Any]:
        return dict(parse_netlink_states(result[NETLINK_KEY], clock_id))

    commands = [date_command(), trimmed_command(NETLINK_KEY, _NETLINK_COMMAND)]
    try:
        values = fetch(ctx, commands, post_process)
    except FetchError as err:
        log.debug("failed to fetch dpllInfo via netlink: %s", err)
        raise FetchError(f"failed to fetch dpllInfo via netlink: {err}") from err
    return DevNetlinkDPLLInfo(
        timestamp=values["date"],
        eec_state=values.get("eec", ""),
        pps_state=values.get("pps", ""),
    )


def get_clock_id(ctx: ExecContext, interface_name: str) -> NetlinkClockID:
    """Fetch the clock id of the device behind ``interface_name``."""

    def post_process(result: Mapping[str, str]) -> dict[str, Any]:
        return {"clockID": parse_clock_id(result[SERIAL_NUMBER_KEY])}

    try:
        values = fetch(ctx, _clock_id_commands(interface_name), post_process)
    except FetchError as err:
        log.debug("failed to fetch netlink clockID %s", err)
        raise FetchError(f"failed to fetch netlink clockID {err}") from err
    return NetlinkClockID(clock_id=values["clockID"], timestamp=values["date"])