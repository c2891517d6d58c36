"""Compile annotated declarations into graphql-core schema modules."""

__version__ = "0.1.0"
