# nagplug

A set of Nagios-compatible check plugins for Linux hosts. Each plugin reads
the kernel's view of the system (mostly from `/proc` and `/sys`, and through
`psutil` for processes, logged-in users and boot time), compares a metric
against warning and critical thresholds, prints one status line with
performance data, and exits with the standard plugin exit code:

| Exit code | State    |
|-----------|----------|
| 0         | OK       |
| 1         | WARNING  |
| 2         | CRITICAL |
| 3         | UNKNOWN  |

The output follows the usual plugin convention:

```
<plugin> <STATE> <message> | label=value[UOM];[warn];[crit];[min];[max] ...
```

Command-line errors and unreadable system data end the plugin with UNKNOWN.

## Installation

```
pip install nagplug
```

Python 3.10 or later is required. Running the test suite needs the `test`
extra:

```
pip install "nagplug[test]"
pytest
```

## Thresholds

Most plugins take `-w/--warning` and `-c/--critical` in the standard plugin
range syntax: `10` (alert outside 0..10), `10:` (alert below 10), `~:10`
(alert above 10), `10:20` (alert outside the range) or `@10:20` (alert
inside the range). The memory and swap plugins require both thresholds to
be given as percentages, such as `80%` or `20%:`.

## Plugins

Every command accepts `-h/--help` and `-V/--version`.

### check_load

System load average, with independent thresholds for the 1, 5 and 15 minute
averages given as `warning,critical` pairs; the warning value must be lower
than the critical one.

```
check_load -r --load1=2,3 --load15=1.5,2.5
```

`-r/--percpu` divides the load averages by the number of CPUs online.

### check_memory

Memory utilisation, reported as used memory by default or as available
memory with `-a/--available`. The thresholds also appear, converted into
the output unit, in the perfdata of the monitored figure.

```
check_memory --available -w 20%: -c 10%:
check_memory --available --units MiB -w 20%: -c 10%:
check_memory --vmstats -w 80% -c 90%
```

Units are chosen with `-b`, `-k` (default), `-m`, `-g`, or `-u/--units`
with one of `bytes`, `B`, `kB`, `MB`, `GB`, `KiB`, `MiB`, `GiB` (all
binary multiples). `-s/--vmstats` adds page-in, page-out and major-fault
rates measured over one second. `-C/--caches` is accepted and ignored.

### check_swap

Swap utilisation. Units are chosen with `-b`, `-k` (default), `-m` or `-g`;
`-s/--vmstats` adds swap page-in and page-out rates.

```
check_swap --vmstats -w 30% -c 50%
```

### check_paging

Memory and swap paging activity per second, measured over one second. The
threshold applies to major faults per second, or to swap reads plus writes
per second with `-S/--swapping-only`. `-s/--swapping` adds the swap
counters to the perfdata; `-p/--paging` is accepted and ignored.

```
check_paging --swapping -w 10 -c 25
check_paging --swapping-only -w 40 -c 60
```

### check_pressure

Pressure Stall Information from `/proc/pressure` (kernel 4.20 or later).
Choose one of `--cpu`, `--io` or `--memory`; for io and memory `--full`
makes the thresholds apply to the "full" line instead of "some".
Thresholds are in microseconds of stall per second. An optional trailing
argument sets the delay in seconds between the two readings (default 1,
at most 3600).

```
check_pressure --cpu
check_pressure --memory --full -w 100 2
```

### check_uptime

How long the system has been running, with thresholds in minutes.
`-m/--clock-monotonic` reads the monotonic clock instead of the boot-time
clock.

```
check_uptime --critical 15: --warning 30:
check_uptime --clock-monotonic -c 15: -w 30:
```

### check_network

Network interface counters from `/sys/class/net`, sampled over a delay in
seconds (optional trailing argument, default 1, at most 3600). Interfaces
can be filtered with `-i/--ifname` (a regular expression searched in the
interface name), `-l/--no-loopback` and `-W/--no-wireless`;
`-k/--check-link` ends with CRITICAL when a link is not up and running.
Counters can be dropped from the performance data with `-b`, `-C`, `-d`,
`-e`, `-m`, `-p`, and `-%/--perc` reports byte rates as a percentage of
link speed. `--ifname-debug` prints the metric keys of each matching
interface and exits with UNKNOWN.

```
check_network --check-link --ifname "^(enp|eth)" 15
check_network --perc --ifname "^(enp|eth)" -w 80% 15
check_network --ifname "^(enp|wlp)" --ifname-debug -Cdm
```

The same plugin is installed under names that select which counter the
thresholds apply to:

```
check_network_collisions
check_network_dropped
check_network_errors
check_network_multicast
```

`-r/--rx-only` and `-t/--tx-only` restrict the threshold to received or
transmitted traffic; they cannot be given together.

### check_tcpcount

Counts TCP sockets by state from `/proc/net/tcp` and `/proc/net/tcp6`; the
threshold applies to established connections. TCPv4 is the default.

```
check_tcpcount --tcp -w 1000 -c 1500
check_tcpcount --tcp --tcp6 -w 1500 -c 2000
```

### check_nbprocs

Number of running processes (or threads with `-t/--threads`) per user; the
threshold applies to the total. The per-user process limits appear in the
performance data when they can be read.

```
check_nbprocs --threads -w 1500 -c 2000
```

### check_selinux

Whether SELinux is enforcing, read from the mounted selinuxfs. Permissive
mode is a warning by default; `-p/--permissive-is-allowed` makes it OK and
`-P/--permissive-is-critical` makes it critical. Disabled is critical.

```
check_selinux --permissive-is-critical
```

### check_temperature

Hardware temperature from the thermal zones in `/sys/class/thermal`.
Without `-t/--thermal_zone` the hottest zone is used; with it, the zone's
critical trip point is added to the perfdata. `-f` and `-k` switch to
Fahrenheit or Kelvin; `-l/--list` lists all thermal zones and exits with
UNKNOWN.

```
check_temperature --list
check_temperature -t 0 -w 80 -c 90
```

### check_users

Number of logged-on users; `-v/--verbose` also lists their sessions.

```
check_users -w 1
```

## Using the library

The checks can be evaluated against data you supply instead of the live
system.

- `nagplug.thresholds`: `State`, `PluginError`, `Range`, `Thresholds`,
  `Unit`, `set_thresholds`, `get_status`,
  `thresholds_expressed_as_percentages`, `perfdata_limit_converted`.
- `nagplug.procfs`: `parse_meminfo`, `read_meminfo`, `parse_vmstat`,
  `read_vmstat`, `vmstat_delta`, with the `MemInfo` and `VmStat` records.
- Each plugin module has a function that builds its status and output line,
  for example `nagplug.memory.memory_report`, `nagplug.swap.swap_report`,
  `nagplug.paging.paging_report`, `nagplug.pressure.pressure_report`,
  `nagplug.uptime.uptime_report`, `nagplug.network.network_report`,
  `nagplug.tcpcount.tcp_report`, `nagplug.nbprocs.nbprocs_report`,
  `nagplug.selinux.selinux_report`, `nagplug.temperature.temperature_report`
  and `nagplug.users.users_report`; `nagplug.load` provides
  `loadavg_status` and `format_load`.

```python
from nagplug.load import loadavg_status
from nagplug.thresholds import State, get_status, set_thresholds

assert loadavg_status([2.8, 1.9, 1.3], [3.0, 1.5, 1.5], [4.0] * 3,
                      [True, True, True]) is State.WARNING
assert get_status(95, set_thresholds("80", "90")) is State.CRITICAL
```

## Limits

The plugins read Linux interfaces (`/proc`, `/sys`) and are meant for Linux
hosts. There is no check for interrupts, disk usage or files, and no
daemon: each command takes one measurement and exits.