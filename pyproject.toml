[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wsbridge"
version = "0.1.0"
description = "Asyncio WebSocket client and server helpers with optional TLS"
requires-python = ">=3.10"
keywords = ["websocket", "asyncio", "tls", "client", "server", "echo"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "websockets>=11",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
wsbridge-echo-server = "wsbridge.echo_server:main"
wsbridge-client = "wsbridge.client:main"

[tool.hatch.build.targets.wheel]
packages = ["wsbridge"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
