[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aksmcp"
version = "0.1.0"
description = "Model Context Protocol server exposing read-only Azure Kubernetes Service cluster and network information as tools"
requires-python = ">=3.10"
dependencies = [
    "requests",
]
keywords = ["azure", "aks", "kubernetes", "mcp", "model-context-protocol", "networking"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
aks-mcp = "aksmcp.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["aksmcp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
