"""External adapters for the crashrelay system.

This package contains all external dependencies (httpx, lxml, HTTP
servers, etc.) and provides implementations of the core port interfaces.

Adapter Organization:

- issue_tracker/: Jira issue creation and resolution reconciliation
- notification/: Stateless relays (web hook, Hall, FogBugz, Campfire)
- cli/: Command-line interface for dispatching events by hand
- webhook/: HTTP receiver for events from the monitoring system
"""
