[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "brupop"
version = "0.1.0"
description = "Update orchestration for Bottlerocket nodes: cron maintenance windows, retry back-off, controller settings, host metrics and update monitoring"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "bottlerocket",
    "kubernetes",
    "operator",
    "cron",
    "updates",
    "maintenance-window",
    "prometheus",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["brupop"]

[tool.hatch.build.targets.sdist]
include = ["brupop", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
