"""Subcommand implementations registered by ``certimarket.cli.app``."""
