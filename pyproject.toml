[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "unudhcpd"
version = "0.1"
description = "A tiny DHCP server that hands out a single IP address to a single client"
requires-python = ">=3.10"
dependencies = []
keywords = ["dhcp", "server", "network", "usb-networking", "point-to-point"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
unudhcpd = "unudhcpd.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["unudhcpd"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
