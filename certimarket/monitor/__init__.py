"""Market monitor — read-only Rich views over the ledger.

The monitor never keeps state of its own; every render reads the engine's
queries.  ``MarketRenderer`` turns items, histories, counts and purchase
receipts into Rich renderables for terminal display.
"""
