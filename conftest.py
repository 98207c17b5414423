"""Shared pytest configuration; makes the package importable from a source checkout."""
