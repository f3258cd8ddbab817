[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "unitmerge"
version = "0.1.0"
description = "Building blocks for greedily merging directed switch pairs of Clos and Dragonfly topologies into groups under per-switch capacity"
requires-python = ">=3.10"
dependencies = []
keywords = ["network", "topology", "clos", "dragonfly", "greedy", "grouping", "optimization"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["unitmerge"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
