"""Command-line interface adapters.

Provides CLI commands for operating crashrelay by hand:
- adapters: List registered adapters and their configuration fields
- verify: Check an adapter configuration
- dispatch: Deliver one event to one adapter
"""
