[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spongekit"
version = "0.1.0"
description = "Networking building blocks: byte buffers, packet parsing, checksums, addresses, file descriptors, sockets, TUN/TAP devices and a poll-based event loop"
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "sockets", "tun", "tap", "event-loop", "checksum", "parser", "buffer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
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

[tool.hatch.build.targets.wheel]
packages = ["spongekit"]

[tool.pytest.ini_options]
addopts = "-ra"
