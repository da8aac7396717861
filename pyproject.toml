[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "eventrelay"
version = "0.1.0"
description = "Event bus building blocks: priorities, filters, errors, channel senders and testing doubles"
requires-python = ">=3.10"
dependencies = []
keywords = ["events", "event-bus", "pubsub", "threading", "testing", "mock"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Software Development :: Testing :: Mocking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["eventrelay"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
