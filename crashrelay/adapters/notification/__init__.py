"""Notification adapters for relaying crash events to third-party products.

Implementations support multiple output channels:
- Web hook (JSON POST to a custom URL)
- Hall (group room integration)
- FogBugz (case per crash issue)
- Campfire (message spoken into a named room)

The Jira issue tracker adapter lives in issue_tracker/.
"""
