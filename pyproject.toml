[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "acid"
version = "0.1.0"
description = "Server building blocks: byte buffers, configuration, logging, timers, HTTP messages and servlets, and a Raft log."
requires-python = ">=3.10"
keywords = ["raft", "http", "servlet", "config", "logging", "timer", "bytearray", "lru", "varint"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["acid"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
