"""Test suite for the crashrelay adapters.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - Remote products are served by httpx.MockTransport
   - Validates adapter behavior and error handling

3. fakes/: Port implementations for testing
   - In-memory notification adapters and a fake Jira REST API
"""
