"""Grandmaster settings read with the pmc management client."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ptpcollect.callbacks import AnalyserFormat
from ptpcollect.command import ExecContext
from ptpcollect.devices.common import FetchError, date_command, fetch, trimmed_command

log = logging.getLogger(__name__)

PMC_KEY = "PMC"
_PMC_COMMAND = "pmc -u -f /var/run/ptp4l.0.config  'GET GRANDMASTER_SETTINGS_NP'"
_INT_PATTERN = re.compile(r"^[+-]?[0-9]+$")
_PMC_REGEX = re.compile(
    r"\sclockClass\s+(\d+)"
    r"\s*clockAccuracy\s+(.+)\n"
    r"\s*offsetScaledLogVariance\s+(.+)\n"
    r"\s*currentUtcOffset\s+(\d+)\n"
    r"\s*leap61\s+(\d+)\n"
    r"\s*leap59\s+(\d+)\n"
    r"\s*currentUtcOffsetValid\s+(\d+)\n"
    r"\s*ptpTimescale\s+(\d+)\n"
    r"\s*timeTraceable\s+(\d+)\n"
    r"\s*frequencyTraceable\s+(\d+)\n"
    r"\s*timeSource\s+(.+)",
    re.ASCII,
)

_INT_GROUPS = {
    "clockClass": 1,
    "currentUtcOffset": 4,
    "leap61": 5,
    "leap59": 6,
    "currentUtcOffsetValid": 7,
    "ptpTimescale": 8,
    "timeTraceable": 9,
    "frequencyTraceable": 10,
}


@dataclass
class PMCInfo:
    """The grandmaster settings reported by ptp4l."""

    timestamp: str = ""
    time_source: str = ""
    clock_accuracy: str = ""
    offset_scaled_log_variance: str = ""
    clock_class: int = 0
    current_utc_offset: int = 0
    leap61: int = 0
    leap59: int = 0
    current_utc_offset_valid: int = 0
    ptp_timescale: int = 0
    time_traceable: int = 0
    frequency_traceable: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the raw JSON-ready mapping."""
        return {
            "timestamp": self.timestamp,
            "timeSource": self.time_source,
            "clockAccuracy": self.clock_accuracy,
            "offsetScaledLogVariance": self.offset_scaled_log_variance,
            "clock_class": self.clock_class,
            "currentUtcOffset": self.current_utc_offset,
            "leap61": self.leap61,
            "leap59": self.leap59,
            "currentUtcOffsetValid": self.current_utc_offset_valid,
            "ptpTimescale": self.ptp_timescale,
            "timeTraceable": self.time_traceable,
            "frequencyTraceable": self.frequency_traceable,
        }

    def get_analyser_format(self) -> list[AnalyserFormat]:
        """Return the entries expected by the analysers."""
        return [AnalyserFormat(id="phc/gm-settings", data=self)]


def map_string_to_int(values: Mapping[str, str]) -> dict[str, int]:
    """Convert every value of ``values`` to an int; raises ValueError on the first failure."""
    converted: dict[str, int] = {}
    for key, value in values.items():
        if _INT_PATTERN.match(value) is None:
            raise ValueError(f"failed to convert {value} into and int")
        converted[key] = int(value)
    return converted


def parse_pmc(output: str) -> dict[str, Any]:
    """Extract the grandmaster settings from pmc output."""
    match = _PMC_REGEX.search(output)
    if match is None:
        raise FetchError(f"unable to parse pmc output: {output}")
    converted = map_string_to_int({key: match.group(idx) for key, idx in _INT_GROUPS.items()})
    result: dict[str, Any] = {
        "timeSource": match.group(11),
        "clockAccuracy": match.group(2),
        "offsetScaledLogVariance": match.group(3),
    }
    result.update(converted)
    return result


def _post_process(result: Mapping[str, str]) -> dict[str, Any]:
    return parse_pmc(result[PMC_KEY])


def get_pmc(ctx: ExecContext) -> PMCInfo:
    """Fetch the grandmaster settings."""
    commands = [date_command(), trimmed_command(PMC_KEY, _PMC_COMMAND)]
    try:
        values = fetch(ctx, commands, _post_process)
    except FetchError as err:
        log.debug("failed to fetch gmSetting %s", err)
        raise FetchError(f"failed to fetch gmSetting {err}") from err
    return PMCInfo(
        timestamp=values["date"],
        time_source=values["timeSource"],
        clock_accuracy=values["clockAccuracy"],
        offset_scaled_log_variance=values["offsetScaledLogVariance"],
        clock_class=values["clockClass"],
        current_utc_offset=values["currentUtcOffset"],
        leap61=values["leap61"],
        leap59=values["leap59"],
        current_utc_offset_valid=values["currentUtcOffsetValid"],
        ptp_timescale=values["ptpTimescale"],
        time_traceable=values["timeTraceable"],
        frequency_traceable=values["frequencyTraceable"],
    )