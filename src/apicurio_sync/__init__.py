"""Synchronise local schema files with an Apicurio registry."""

__version__ = "0.4.0"
