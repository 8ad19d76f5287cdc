[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bplusnodes"
version = "0.1.0"
description = "Node layout, node pools and block key search for integer-keyed B+ trees"
requires-python = ">=3.10"
dependencies = []
keywords = ["btree", "b+tree", "search", "node pool", "data structures"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bplusnodes"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
