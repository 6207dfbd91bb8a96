[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "groupbot"
version = "0.1.0"
description = "Building blocks for a group chat bot: timed reminders, group management helpers, MIDI melodies, daily pairings and small utilities"
requires-python = ">=3.10"
keywords = ["chatbot", "group", "reminder", "midi", "cron"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Natural Language :: Chinese (Simplified)",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]
dependencies = [
    "mido",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["groupbot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
