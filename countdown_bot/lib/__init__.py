"""Shared library code: transport contracts and errors."""
