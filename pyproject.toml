[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trojango"
version = "0.1.0"
description = "Trojan-protocol proxy core: configuration loading, option handling, connection and packet relaying, logging and geodata decoding"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["proxy", "trojan", "relay", "configuration", "geoip", "geosite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
trojango = "trojango.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["trojango"]

[tool.hatch.build.targets.sdist]
include = ["trojango", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
