[build-system]
requires = ["hatchling>=1.18"]
build-backend = "hatchling.build"

[project]
name = "coggo"
version = "0.1.0"
description = "Building blocks for an event-sourced personal knowledge graph: data model, did:key peer identities, open type schemas, a peer registry, event replay and response projection."
requires-python = ">=3.11"
dependencies = [
    "cryptography>=41",
]
keywords = [
    "knowledge-graph",
    "event-sourcing",
    "did-key",
    "ed25519",
    "schema",
    "time-travel",
    "projection",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
]

[tool.hatch.build.targets.wheel]
packages = ["coggo"]

[tool.hatch.build.targets.sdist]
include = ["coggo", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
