"""Protobuf descriptor lookups, Pact file reading, config merging and mock server results for Pact."""

__version__ = "0.3.14"