[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ssishell"
version = "0.1.0"
description = "A small interactive POSIX shell with pipelines, background jobs, history and tab completion"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "pipeline", "background jobs", "readline", "command line"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ssi = "ssishell.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["ssishell"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
