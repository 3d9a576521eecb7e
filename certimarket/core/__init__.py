"""Ledger components and the engine that writes them."""
