[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "daogen"
version = "0.1.0"
description = "Building blocks for generating typed data-access code: model fields, column type mapping, dynamic SQL templates and clause safety checks"
requires-python = ">=3.10"
dependencies = []
keywords = ["code generation", "orm", "sql", "dao", "templates"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["daogen"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
