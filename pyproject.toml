[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bootcamp"
version = "4.7.0"
description = "Homework runner for small compiled exercises, plus simulated on-chain example programs"
requires-python = ">=3.11"
dependencies = [
    "watchdog",
]
keywords = ["exercises", "homework", "teaching", "solana", "simulation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education :: Computer Aided Instruction (CAI)",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
bootcamp = "bootcamp.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["bootcamp"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
