# ptpcollect

Building blocks for collecting Precision Time Protocol (PTP) metrics from a
node's PTP daemon container: device information, DPLL states and offsets,
GNSS receiver status and versions, and PMC grandmaster settings.

The package builds shell scripts, runs them through an execution context that
you provide, and parses the tagged output into dataclasses. Those dataclasses
can then be written out as raw lines or in the analyser JSON format.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Execution contexts

Every fetch function takes an `ExecContext` (a protocol in `ptpcollect.command`).
Its `exec_command(command, stdin=None)` method must run `command` inside the
target container, feeding it `stdin`, and return `(stdout, stderr)`. The fetch
functions send their whole script to `/usr/bin/sh` on standard input.

Each command in a script is a `Cmd`: its output is wrapped between
`echo '<key>'` and `echo '</key>'` markers, and `Cmd.extract_result` finds it
again in the combined output. `CmdGroup` joins several commands into one
script. A missing result raises `CommandError`.

## Fetching data

```python
from ptpcollect.devices.device_info import get_ptp_device_info
from ptpcollect.devices.dpll_fs import get_dev_dpll_filesystem_info, is_dpll_filesystem_present
from ptpcollect.devices.dpll_netlink import get_clock_id, get_dev_dpll_netlink_info
from ptpcollect.devices.gps_ubx import get_gps_nav
from ptpcollect.devices.gps_ubx_ver import get_gps_versions
from ptpcollect.devices.pmc import get_pmc

pmc = get_pmc(ctx)                       # PMCInfo
print(pmc.clock_class, pmc.time_source)

nav = get_gps_nav(ctx)                   # GPSDetails
print(nav.nav_clock.time_acc, [a.status for a in nav.antenna_details])

versions = get_gps_versions(ctx)         # GPSVersions
info = get_ptp_device_info("ens7f0", ctx)  # PTPDeviceInfo

if is_dpll_filesystem_present(ctx, "ens7f0"):
    dpll = get_dev_dpll_filesystem_info(ctx, "ens7f0")
else:
    clock = get_clock_id(ctx, "ens7f0")
    dpll = get_dev_dpll_netlink_info(ctx, clock.clock_id)
```

The parsers are also usable on their own, for example `parse_pmc`,
`parse_ubx`, `parse_gps_versions`, `extract_ethtool_info`,
`parse_netlink_states` and `parse_clock_id`.

Timestamps reported by the host (`date +%s.%N` or ubxtool's `-t` output) are
converted to RFC 3339 UTC strings with `ptpcollect.devices.common.parse_timestamp`
and `format_rfc3339_nano`.

If a fetch cannot run its script or parse what came back, it raises
`ptpcollect.devices.common.FetchError`.

## Writing output

```python
from ptpcollect.callbacks import OutputFormat, setup_callback

with setup_callback("out.jsonl", OutputFormat.ANALYSER_JSON) as callback:
    callback.call(pmc, "pmc-info")
```

A filename of `""` or `"-"` writes to standard output. With
`OutputFormat.RAW` each line is `<TypeName>:<tag>, <json>`; with
`OutputFormat.ANALYSER_JSON` each entry from the value's
`get_analyser_format()` is written as one JSON object per line.
`FileCallback.cleanup()` closes the file.

## Collectors

`ptpcollect.collectors.base` defines `BaseCollector`, `PollResult`,
`CollectionConstructor`, `Inclusion` and `CollectorRegistry`, plus a
process-wide registry reached through `get_registry()` and
`register_collector()`. A collector's `poll()` runs one collection and returns
a `PollResult` that holds any errors instead of raising them.

`ptpcollect.collectors.builtin` provides `PMCCollector`, `GPSCollector` and
`DPLLFilesystemCollector`, built with `new_pmc_collector`,
`new_gps_collector` and `new_dpll_filesystem_collector` from a
`CollectionConstructor` whose `context` is set (otherwise `CollectorError` is
raised). `register_builtin_collectors(registry)` registers the PMC and GNSS
collectors as optional; the DPLL filesystem collector is built directly.

```python
from ptpcollect.collectors.base import CollectionConstructor, CollectorRegistry
from ptpcollect.collectors.builtin import register_builtin_collectors

registry = register_builtin_collectors(CollectorRegistry())
collector = registry.get_builder("PMC")(
    CollectionConstructor(callback=callback, context=ctx, ptp_interface="ens7f0")
)
result = collector.poll()
print(result.collector_name, result.ok)
```

`ptpcollect.pods.find_pod_name_from_prefix` picks the single pod name that
starts with a prefix from a list of names, skipping names ending in `-debug`.

## What this package does not do

- It has no command-line tool.
- It does not connect to a cluster or run anything in a container itself; you
  supply the `ExecContext`.
- It does not schedule or loop over polls; you call `poll()` when you want.
- It has no collector for device information, for netlink DPLL states or for
  container logs, and it does not create or delete pods.