[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "coinsign"
version = "0.1.0"
description = "Transaction parsing, address encoding and amount arithmetic for Bitcoin-family signing workflows"
requires-python = ">=3.10"
dependencies = []
keywords = ["bitcoin", "bech32", "cashaddr", "segwit", "transaction", "zcash"]
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
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["coinsign"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
