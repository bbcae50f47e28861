[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "unispec"
version = "0.0.8"
description = "Terminal browser for spec-driven development areas, topics and tasks"
requires-python = ">=3.10"
dependencies = []
keywords = ["specs", "spec-driven development", "tui", "curses", "tasks", "topics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console :: Curses",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
unispec = "unispec.terminal:main"

[tool.hatch.build.targets.wheel]
packages = ["unispec"]

[tool.pytest.ini_options]
addopts = "-ra"
