[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "simplechat"
version = "0.1.0"
description = "A small TCP chat server and console client with public and private messages"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "tcp", "server", "client", "console"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
simplechat-server = "simplechat.server:main"
simplechat-client = "simplechat.client:main"

[tool.setuptools]
packages = ["simplechat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
