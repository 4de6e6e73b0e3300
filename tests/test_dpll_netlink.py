import pytest

from ptpcollect.devices.common import FetchError
from ptpcollect.devices.dpll_netlink import (
    DevNetlinkDPLLInfo,
    NetlinkClockID,
    get_clock_id,
    get_dev_dpll_netlink_info,
    parse_clock_id,
    parse_netlink_states,
)

CLOCK_ID = 1234567890123456789
OTHER_CLOCK_ID = 42

NETLINK_OUTPUT = (
    "[{'clock-id': %d, 'id': 0, 'lock-status': 'locked-ho-acq', 'mode': 'automatic', "
    "'mode-supported': ['automatic'], 'module-name': 'ice', 'type': 'eec'}, "
    "{'clock-id': %d, 'id': 1, 'lock-status': 'holdover', 'mode': 'automatic', "
    "'mode-supported': ['automatic'], 'module-name': 'ice', 'type': 'pps'}, "
    "{'clock-id': %d, 'id': 2, 'lock-status': 'freerun', 'mode': 'automatic', "
    "'mode-supported': ['automatic'], 'module-name': 'ice', 'type': 'pps'}]"
) % (CLOCK_ID, CLOCK_ID, OTHER_CLOCK_ID)


class FakeContext:
    def __init__(self, stdout):
        self.stdout = stdout
        self.stdin_seen = []

    def exec_command(self, command, stdin=None):
        self.stdin_seen.append(stdin)
        return self.stdout, ""


def test_parse_states_for_matching_clock():
    states = parse_netlink_states(NETLINK_OUTPUT, CLOCK_ID)
    assert states == {"eec": "3", "pps": "4"}


def test_parse_states_other_clock():
    states = parse_netlink_states(NETLINK_OUTPUT, OTHER_CLOCK_ID)
    assert states == {"pps": "1"}


def test_unknown_lock_status_maps_to_minus_one():
    output = "[{'clock-id': 7, 'lock-status': 'bogus', 'type': 'eec'}]"
    assert parse_netlink_states(output, 7) == {"eec": "-1"}


def test_invalid_output_yields_no_states():
    assert parse_netlink_states("not json at all", CLOCK_ID) == {}


def test_parse_clock_id_round_trip():
    for value in (0, 1, CLOCK_ID, 2**64 - 1):
        assert parse_clock_id(format(value, "x")) == value


@pytest.mark.parametrize("text", ["", "zz", "0x1f", "12 34"])
def test_parse_clock_id_rejects_non_hex(text):
    with pytest.raises(FetchError):
        parse_clock_id(text)


def test_get_dev_dpll_netlink_info():
    stdout = (
        "<date>\n1686916187.0584\n</date>\n"
        f"<dpll-netlink>\n{NETLINK_OUTPUT}\n</dpll-netlink>\n"
    )
    ctx = FakeContext(stdout)
    info = get_dev_dpll_netlink_info(ctx, CLOCK_ID)
    assert info == DevNetlinkDPLLInfo(
        timestamp="2023-06-16T11:49:47.0584Z", eec_state="3", pps_state="4"
    )
    assert "--dump device-get" in ctx.stdin_seen[0]


def test_netlink_info_analyser_format():
    info = DevNetlinkDPLLInfo(timestamp="2023-06-16T11:49:47.0584Z", eec_state="3", pps_state="4")
    (entry,) = info.get_analyser_format()
    assert entry.id == "dpll/states"
    assert entry.data == info.to_dict()


def test_get_clock_id():
    serial = "0123456789abcdef"
    stdout = (
        "<date>\n1686916187.0584\n</date>\n"
        f"<dpll-netlink-serial-number>\n{serial}\n</dpll-netlink-serial-number>\n"
    )
    ctx = FakeContext(stdout)
    result = get_clock_id(ctx, "ens1f0")
    assert result == NetlinkClockID(clock_id=int(serial, 16), timestamp="2023-06-16T11:49:47.0584Z")
    assert "IFNAME=ens1f0" in ctx.stdin_seen[0]


def test_get_clock_id_bad_serial():
    stdout = (
        "<date>\n1686916187.0584\n</date>\n"
        "<dpll-netlink-serial-number>\n\n</dpll-netlink-serial-number>\n"
    )
    with pytest.raises(FetchError):
        get_clock_id(FakeContext(stdout), "ens1f0")