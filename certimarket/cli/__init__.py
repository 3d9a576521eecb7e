"""certimarket CLI — Typer-based command-line interface.

Provides the ``certimarket`` command with subcommands for deploying a
market, managing participants and certifiers, registering and trading
items, and querying provenance.

All output uses Rich for formatted terminal display.
"""
