[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bpcore"
version = "0.12.0"
description = "Bitcoin protocol core primitives and deterministic bitcoin commitments (opret and tapret)"
requires-python = ">=3.10"
dependencies = []
keywords = ["bitcoin", "taproot", "commitments", "client-side-validation", "opret", "tapret"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bpcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
