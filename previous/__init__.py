"""Toolkit for SQLite-backed, server-rendered web applications, with the metagen build command."""

__version__ = "0.1.0"