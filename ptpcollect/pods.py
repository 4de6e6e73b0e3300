"""Pod name lookup by prefix."""

from __future__ import annotations

from collections.abc import Iterable


class PodLookupError(LookupError):
    """Raised when a prefix matches no pod or more than one."""


def find_pod_name_from_prefix(pod_names: Iterable[str], namespace: str, prefix: str) -> str:
    """Return the one pod name starting with ``prefix``, ignoring "-debug" pods."""
    matches = [
        name for name in pod_names if name.startswith(prefix) and not name.endswith("-debug")
    ]
    if not matches:
        raise PodLookupError(f"no pod with prefix {prefix} found in namespace {namespace}")
    if len(matches) > 1:
        raise PodLookupError(
            f"too many ({len(matches)}) pods with prefix {prefix} found in namespace {namespace}"
        )
    return matches[0]