"""GNSS navigation status, clock and antenna monitoring read with ubxtool."""

from __future__ import annotations

import itertools
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from ptpcollect.callbacks import AnalyserFormat
from ptpcollect.command import ExecContext
from ptpcollect.devices.common import (
    FetchError,
    fetch,
    format_rfc3339_nano,
    parse_timestamp,
    trimmed_command,
)

log = logging.getLogger(__name__)

GPS_KEY = "GPS"
_GPS_COMMAND = "ubxtool -t -p NAV-STATUS -p NAV-CLOCK -p MON-RF -P 29.20"

TIMESTAMP_PATTERN = r"(\d+.\d+)"

_NAV_STATUS_REGEX = re.compile(
    TIMESTAMP_PATTERN
    + r"\nUBX-NAV-STATUS:\n\s+iTOW (\d+) gpsFix (\d) flags (.*) fixStat "
    r"(.*) flags2\s(.*)\n\s+ttff\s(\d+), msss (\d+)\n\n",
    re.ASCII,
)
_NAV_CLOCK_REGEX = re.compile(
    TIMESTAMP_PATTERN
    + r"\nUBX-NAV-CLOCK:\n\s+iTOW (\d+) clkB (-?\d+) clkD (-?\d+) tAcc (\d+) fAcc (\d+)",
    re.ASCII,
)
_ANT_FULL_BLOCK_REGEX = re.compile(
    TIMESTAMP_PATTERN
    + r"\nUBX-MON-RF:\n"
    r"\s+version \d nBlocks (\d) reserved1 \d \d\n([^UBX]*)",
    re.ASCII,
)
_ANT_INTERNAL_BLOCK_REGEX = re.compile(
    r"\s+blockId (\d) flags \w+ antStatus (\d) antPower (\d+) postStatus \d reserved2 \d \d \d \d\n"
    r"\s+noisePerMS \d+ agcCnt \d+ jamInd \d+ ofsI -?\d+ magI \d+ ofsQ -?\d+ magQ \d+\n"
    r"\s+reserved3 \d \d \d\n?",
    re.ASCII,
)


@dataclass
class GPSNavStatus:
    """The UBX-NAV-STATUS values."""

    timestamp: str = ""
    flags: str = ""
    gps_fix: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {"timestamp": self.timestamp, "flags": self.flags, "GPSFix": self.gps_fix}


@dataclass
class GPSNavClock:
    """The UBX-NAV-CLOCK accuracy values."""

    timestamp: str = ""
    time_acc: int = 0
    freq_acc: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {"timestamp": self.timestamp, "timeAcc": self.time_acc, "freqAcc": self.freq_acc}


@dataclass
class GPSAntennaDetails:
    """One UBX-MON-RF antenna block."""

    timestamp: str = ""
    block_id: int = 0
    status: int = 0
    power: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {
            "timestamp": self.timestamp,
            "blockId": self.block_id,
            "status": self.status,
            "power": self.power,
        }


@dataclass
class GPSDetails:
    """Navigation status, clock and antenna details of the GNSS receiver."""

    nav_status: GPSNavStatus = field(default_factory=GPSNavStatus)
    antenna_details: list[GPSAntennaDetails] = field(default_factory=list)
    nav_clock: GPSNavClock = field(default_factory=GPSNavClock)

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {
            "navStatus": self.nav_status.to_dict(),
            "antennaDetails": [ant.to_dict() for ant in self.antenna_details],
            "navClock": self.nav_clock.to_dict(),
        }

    def get_analyser_format(self) -> list[AnalyserFormat]:
        """Return the entries expected by the analysers."""
        messages = [
            AnalyserFormat(
                id="gnss/time-error",
                data={
                    "timestamp": self.nav_clock.timestamp,
                    "terror": self.nav_clock.time_acc,
                    "ferror": self.nav_clock.freq_acc,
                    "state": self.nav_status.gps_fix,
                    "flags": self.nav_status.flags,
                },
            )
        ]
        messages.extend(AnalyserFormat(id="gnss/rf-mon", data=ant) for ant in self.antenna_details)
        return messages


def _format_timestamp(text: str, what: str) -> str:
    try:
        return format_rfc3339_nano(parse_timestamp(text))
    except ValueError as err:
        raise FetchError(f"failed to parse {what} {err}") from err


def parse_nav_status(output: str) -> GPSNavStatus:
    """Extract the navigation status from ubxtool output."""
    match = _NAV_STATUS_REGEX.search(output)
    if match is None:
        raise FetchError(f"unable to parse UBX Nav Status from {output}")
    return GPSNavStatus(
        timestamp=_format_timestamp(match.group(1), "navStatusTimestamp"),
        gps_fix=int(match.group(3)),
        flags=match.group(4),
    )


def parse_nav_clock(output: str) -> GPSNavClock:
    """Extract the navigation clock accuracies from ubxtool output."""
    match = _NAV_CLOCK_REGEX.search(output)
    if match is None:
        raise FetchError(f"unable to parse UBX Nav Status or Clock from {output}")
    return GPSNavClock(
        timestamp=_format_timestamp(match.group(1), "navClockTimestamp"),
        time_acc=int(match.group(5)),
        freq_acc=int(match.group(6)),
    )


def parse_mon_rf(output: str) -> list[GPSAntennaDetails]:
    """Extract at most nBlocks antenna blocks from ubxtool output."""
    match = _ANT_FULL_BLOCK_REGEX.search(output)
    if match is None:
        raise FetchError(f"failed to match UBX MON in {output}")
    timestamp = _format_timestamp(match.group(1), "monTimestamp")
    n_blocks = int(match.group(2))
    blocks = itertools.islice(_ANT_INTERNAL_BLOCK_REGEX.finditer(match.group(3)), n_blocks)
    return [
        GPSAntennaDetails(
            timestamp=timestamp,
            block_id=int(block.group(1)),
            status=int(block.group(2)),
            power=int(block.group(3)),
        )
        for block in blocks
    ]


def parse_ubx(output: str) -> GPSDetails:
    """Parse all sections of the ubxtool output; raises listing every section that failed."""
    errors: list[str] = []
    details = GPSDetails()
    try:
        details.nav_status = parse_nav_status(output)
    except FetchError as err:
        log.debug("processUBXNav Failed: %s", err)
        errors.append(str(err))
    try:
        details.nav_clock = parse_nav_clock(output)
    except FetchError as err:
        log.debug("processUBXNav Failed: %s", err)
        errors.append(str(err))
    try:
        details.antenna_details = parse_mon_rf(output)
    except FetchError as err:
        log.debug("processUBXMon Failed: %s", err)
        errors.append(str(err))
    if errors:
        raise FetchError(
            "the following errors occurred fetching the GNSS values: " + "; ".join(errors)
        )
    return details


def get_gps_nav(ctx: ExecContext) -> GPSDetails:
    """Fetch the GNSS navigation details of the host."""
    try:
        values = fetch(ctx, [trimmed_command(GPS_KEY, _GPS_COMMAND)])
        return parse_ubx(values[GPS_KEY])
    except FetchError as err:
        log.debug("failed to fetch gpsNav %s", err)
        raise FetchError(f"failed to fetch gpsNav {err}") from err