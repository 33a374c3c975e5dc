"""Webhook receiver adapters.

Provides HTTP endpoints for the monitoring system to deliver events:
- Dispatch a crash event to a notification adapter
- List registered adapters and their configuration fields
- Health check
"""
