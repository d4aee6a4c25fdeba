[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "moduledefs"
version = "0.1.0"
description = "Parser for Windows module-definition (.def) files and COFF .drectve linker directives."
requires-python = ">=3.10"
dependencies = []
keywords = ["def", "module-definition", "coff", "drectve", "linker", "windows"]
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
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["moduledefs"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
