[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zipkincore"
version = "0.1.0"
description = "Zipkin V2 span model, trace identifiers, ID generators and tracing helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["zipkin", "tracing", "distributed-tracing", "span", "observability"]
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
    "Topic :: System :: Monitoring",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["zipkincore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
