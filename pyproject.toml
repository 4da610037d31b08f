[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "odometer"
version = "0.1.0"
description = "A tool for benchmarking Ethereum clients"
requires-python = ">=3.10"
keywords = ["ethereum", "benchmark", "engine-api", "gas", "execution-client", "docker"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]
dependencies = [
    "requests",
    "tabulate",
    "tqdm",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
odometer = "odometer.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["odometer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
