[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pactbuf"
version = "0.3.14"
description = "Protobuf and gRPC support for Pact contract testing: descriptor lookup, Pact file reading, config merging and mock server results"
requires-python = ">=3.10"
keywords = ["testing", "pact", "cdc", "protobuf", "grpc", "contract-testing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Testing",
]
dependencies = [
    "protobuf",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pactbuf"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
