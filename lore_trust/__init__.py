"""
lore-trust: peer reputation scores and trust graphs for public-ledger accounts.

Turns A/B/C/D peer ratings and relationship declarations into weighted
reputation scores (batch), two-level trust graphs and reconciled relationship
lists (per request). Modular layout: reputation engine, database repository,
API server and batch scheduler.
"""

__version__ = "0.1.0"
