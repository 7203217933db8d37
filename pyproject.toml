[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rugfilter"
version = "0.1.0"
description = "Pre-buy anti-rug filters, risk scoring and Telegram control for token sniping bots"
requires-python = ">=3.10"
dependencies = [
    "httpx",
]
keywords = [
    "solana",
    "pump.fun",
    "anti-rug",
    "risk-scoring",
    "trading-bot",
    "telegram",
]
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
    "Framework :: AsyncIO",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "respx",
]

[project.scripts]
rugfilter-control = "rugfilter.telegram_control:main"

[tool.hatch.build.targets.wheel]
packages = ["rugfilter"]

[tool.hatch.build.targets.sdist]
include = [
    "rugfilter",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
