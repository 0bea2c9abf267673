[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mcpsched"
version = "0.1.0"
description = "A small master control program that launches commands from a file and schedules them round-robin with signals"
requires-python = ">=3.10"
dependencies = []
keywords = ["scheduler", "round-robin", "signals", "processes", "mcp"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mcp-launch = "mcpsched.launcher:main"
mcp-signaled = "mcpsched.signaled:main"
mcp-schedule = "mcpsched.scheduler:main"
mcp-dashboard = "mcpsched.dashboard:main"
mcp-cpubound = "mcpsched.workloads:cpubound_main"
mcp-iobound = "mcpsched.workloads:iobound_main"

[tool.hatch.build.targets.wheel]
packages = ["mcpsched"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
