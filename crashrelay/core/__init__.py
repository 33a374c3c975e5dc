"""Core domain logic for the crashrelay system.

This package contains zero external dependencies and represents
the pure business logic of the application: URL resolution, the
resolution reconciliation decision, message templates and event
dispatch. All HTTP integrations are handled by the adapters package.
"""

from .models import (
    NO_RESOURCE,
    ConfigField,
    CrashPayload,
    CreatedIssue,
    NoOp,
    ParsedProjectUrl,
    ProjectReference,
    RemoteIssue,
    Reopen,
    Resolve,
    TransitionDecision,
    VerificationResult,
)

__all__ = [
    "NO_RESOURCE",
    "ConfigField",
    "CrashPayload",
    "CreatedIssue",
    "NoOp",
    "ParsedProjectUrl",
    "ProjectReference",
    "RemoteIssue",
    "Reopen",
    "Resolve",
    "TransitionDecision",
    "VerificationResult",
]
