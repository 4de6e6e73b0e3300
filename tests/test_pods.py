import pytest

from ptpcollect.pods import PodLookupError, find_pod_name_from_prefix


def test_pod_that_does_not_exist_raises():
    with pytest.raises(PodLookupError, match="no pod with prefix Test found in namespace TestNamespace"):
        find_pod_name_from_prefix(["NotATestPod-3989"], "TestNamespace", "Test")


def test_pod_that_exists_is_found():
    name = find_pod_name_from_prefix(["NotATestPod-3989", "TestPod-8292"], "TestNamespace", "Test")
    assert name == "TestPod-8292"


def test_debug_pods_are_ignored():
    name = find_pod_name_from_prefix(
        ["linuxptp-daemon-abc-debug", "linuxptp-daemon-abc"], "openshift-ptp", "linuxptp-daemon-"
    )
    assert name == "linuxptp-daemon-abc"


def test_too_many_pods_raises():
    with pytest.raises(PodLookupError, match=r"too many \(2\) pods"):
        find_pod_name_from_prefix(["TestPod-1", "TestPod-2"], "ns", "Test")


def test_empty_list_raises():
    with pytest.raises(PodLookupError):
        find_pod_name_from_prefix([], "ns", "Test")


def test_accepts_generator():
    names = (n for n in ["a-1", "b-2"])
    assert find_pod_name_from_prefix(names, "ns", "b") == "b-2"