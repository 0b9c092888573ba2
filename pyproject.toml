[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dnscacher"
version = "0.1.0"
description = "A small UDP DNS server that answers blocked hostnames with 127.0.0.1 and forwards everything else upstream"
requires-python = ">=3.10"
dependencies = []
keywords = ["dns", "blocklist", "udp", "sinkhole", "ad-blocking"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Name Service (DNS)",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dnscacher = "dnscacher.server:main"

[tool.hatch.build.targets.wheel]
packages = ["dnscacher"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
