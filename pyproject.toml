[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "plantwire"
version = "0.1.0"
description = "Client-side building blocks for a plant historian database: subscriptions, GN drift tracking, native write helpers and system metric points."
requires-python = ">=3.10"
dependencies = []
keywords = ["historian", "realtime", "subscription", "industrial", "database", "metrics"]
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
    "Topic :: Database :: Front-Ends",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["plantwire"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
