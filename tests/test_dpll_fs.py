import pytest

from ptpcollect.devices.common import FetchError
from ptpcollect.devices.dpll_fs import (
    DevFilesystemDPLLInfo,
    build_dpll_filesystem_commands,
    get_dev_dpll_filesystem_info,
    is_dpll_filesystem_present,
)

EXPECTED_INPUT = (
    "echo '<date>';date +%s.%N;echo '</date>';"
    "echo '<dpll_0_state>';cat /sys/class/net/aFakeInterface/device/dpll_0_state;echo '</dpll_0_state>';"
    "echo '<dpll_1_state>';cat /sys/class/net/aFakeInterface/device/dpll_1_state;echo '</dpll_1_state>';"
    "echo '<dpll_1_offset>';cat /sys/class/net/aFakeInterface/device/dpll_1_offset;echo '</dpll_1_offset>';"
)

PATHS_INPUT = "echo '<paths>';ls -1 /sys/class/net/aFakeInterface/device/;echo '</paths>';"


class FakeContext:
    def __init__(self, responses):
        self.responses = responses

    def exec_command(self, command, stdin=None):
        return self.responses.get(stdin, ""), ""


def _output(offset_text):
    output = "<date>\n1686916187.0584\n</date>\n"
    output += "<dpll_0_state>\n2\n</dpll_0_state>\n"
    output += "<dpll_1_state>\n10\n</dpll_1_state>\n"
    output += f"<dpll_1_offset>\n{offset_text}\n</dpll_1_offset>\n"
    return output


def test_command_text():
    assert "".join(c.command for c in build_dpll_filesystem_commands("aFakeInterface")) == EXPECTED_INPUT


def test_get_dev_dpll_filesystem_info():
    offset = -34.0
    ctx = FakeContext({EXPECTED_INPUT: _output(f"{offset:f}")})
    info = get_dev_dpll_filesystem_info(ctx, "aFakeInterface")
    assert info.timestamp == "2023-06-16T11:49:47.0584Z"
    assert info.eec_state == "2"
    assert info.pps_state == "10"
    assert info.pps_offset == offset


def test_bad_offset_raises():
    ctx = FakeContext({EXPECTED_INPUT: _output("not-a-number")})
    with pytest.raises(FetchError):
        get_dev_dpll_filesystem_info(ctx, "aFakeInterface")


def test_analyser_format_scales_offset():
    info = DevFilesystemDPLLInfo(timestamp="t", eec_state="2", pps_state="10", pps_offset=-34.0)
    [entry] = info.get_analyser_format()
    assert entry.id == "dpll/time-error"
    assert entry.data["terror"] == -34.0 / 100
    assert entry.data["eecstate"] == "2"
    assert info.to_dict() == {"timestamp": "t", "eecstate": "2", "state": "10", "terror": -34.0}


def test_filesystem_present():
    listing = "<paths>\ndpll_0_state\ndpll_1_offset\ndpll_1_state\nvendor\n</paths>\n"
    assert is_dpll_filesystem_present(FakeContext({PATHS_INPUT: listing}), "aFakeInterface") is True


def test_filesystem_absent():
    listing = "<paths>\ndpll_0_state\nvendor\n</paths>\n"
    assert is_dpll_filesystem_present(FakeContext({PATHS_INPUT: listing}), "aFakeInterface") is False


def test_filesystem_check_fails_without_output():
    with pytest.raises(FetchError):
        is_dpll_filesystem_present(FakeContext({}), "aFakeInterface")