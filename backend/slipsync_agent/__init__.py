# Overview: SlipSync print agent: pairs with the backend once, then heartbeats and prints queued receipts.

__version__ = "0.1.0"
