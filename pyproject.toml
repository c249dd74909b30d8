[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "arcmint"
version = "0.1.0"
description = "Load-test configuration, metrics and SLO reporting, wallet note storage and merchant payment bookkeeping for an e-cash mint"
requires-python = ">=3.11"
keywords = ["e-cash", "mint", "lightning", "load-testing", "slo", "wallet", "merchant"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Testing :: Traffic Generation",
]
dependencies = [
    "requests>=2.31",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "responses>=0.24",
]

[tool.hatch.build.targets.wheel]
packages = ["arcmint"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
