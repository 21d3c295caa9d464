[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nagplug"
version = "1.0.0"
description = "Nagios-compatible monitoring plugins for Linux systems: load, memory, swap, paging, pressure, network, TCP, processes, SELinux, temperature, uptime and users"
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = [
    "nagios",
    "icinga",
    "monitoring",
    "plugin",
    "linux",
    "procfs",
    "perfdata",
]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
check_load = "nagplug.load:main"
check_memory = "nagplug.memory:main"
check_swap = "nagplug.swap:main"
check_paging = "nagplug.paging:main"
check_pressure = "nagplug.pressure:main"
check_uptime = "nagplug.uptime:main"
check_network = "nagplug.network:main"
check_network_collisions = "nagplug.network:main"
check_network_dropped = "nagplug.network:main"
check_network_errors = "nagplug.network:main"
check_network_multicast = "nagplug.network:main"
check_tcpcount = "nagplug.tcpcount:main"
check_nbprocs = "nagplug.nbprocs:main"
check_selinux = "nagplug.selinux:main"
check_temperature = "nagplug.temperature:main"
check_users = "nagplug.users:main"

[tool.hatch.build.targets.wheel]
packages = ["nagplug"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
