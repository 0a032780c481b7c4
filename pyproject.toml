[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "releasetrack"
version = "1.0.1"
description = "Track GitHub repository releases and install compatible binaries for the current platform"
requires-python = ">=3.10"
keywords = ["github", "releases", "binaries", "installer", "updater", "cli"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
    "Topic :: System :: Software Distribution",
]
dependencies = [
    "requests>=2.28",
    "tabulate>=0.9",
    "tqdm>=4.64",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
track = "releasetrack.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["releasetrack"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
