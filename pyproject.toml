[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zinx"
version = "0.1.0"
description = "Building blocks for message-oriented servers: TLV packing, sharded maps, routers, timer wheels and heartbeats"
requires-python = ">=3.10"
dependencies = []
keywords = ["tlv", "router", "timer-wheel", "heartbeat", "snowflake", "concurrent-map", "log-rotation"]
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
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["zinx"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
