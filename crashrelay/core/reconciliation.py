"""Resolution reconciliation decisions.

The monitoring system owns the truth about whether a crash is resolved.
The tracker issue mirrors it. Given both sides, decide the minimal workflow
transition that makes the tracker agree:

    locally_resolved  remotely_resolved  decision
    ----------------  -----------------  --------
    True              False              Resolve
    False             True               Reopen
    True              True               NoOp
    False             False              NoOp

The decision depends only on current state, never on earlier decisions, so
redelivering the same event is harmless: once the tracker has been moved,
the next call sees agreement and returns NoOp.
"""

from .models import NoOp, Reopen, Resolve, TransitionDecision

RESOLVE_TRANSITION_ID = "2"
REOPEN_TRANSITION_ID = "3"

RESOLVE_COMMENT = "This CR has been marked as resolved in Crashlytics"
REOPEN_COMMENT = "This CR has been reopened in Crashlytics"


def decide_transition(locally_resolved: bool, remotely_resolved: bool) -> TransitionDecision:
    """Compute the transition needed to align the tracker with local state.

    Args:
        locally_resolved: The crash is marked resolved upstream.
        remotely_resolved: The tracker issue carries a resolution.

    Returns:
        Resolve, Reopen or NoOp.
    """
    if locally_resolved and not remotely_resolved:
        return Resolve(transition_id=RESOLVE_TRANSITION_ID, comment=RESOLVE_COMMENT)
    if remotely_resolved and not locally_resolved:
        return Reopen(transition_id=REOPEN_TRANSITION_ID, comment=REOPEN_COMMENT)
    return NoOp()


def transition_body(decision: Resolve | Reopen) -> dict:
    """Build the tracker's transition request body for a decision."""
    return {
        "update": {"comment": [{"add": {"body": decision.comment}}]},
        "transition": {"id": decision.transition_id},
    }


__all__ = [
    "REOPEN_COMMENT",
    "REOPEN_TRANSITION_ID",
    "RESOLVE_COMMENT",
    "RESOLVE_TRANSITION_ID",
    "decide_transition",
    "transition_body",
]
