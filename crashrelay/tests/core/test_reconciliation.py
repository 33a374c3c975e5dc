"""Tests for resolution reconciliation decisions."""

import pytest

from crashrelay.core.models import NoOp, Reopen, Resolve
from crashrelay.core.reconciliation import (
    REOPEN_COMMENT,
    REOPEN_TRANSITION_ID,
    RESOLVE_COMMENT,
    RESOLVE_TRANSITION_ID,
    decide_transition,
    transition_body,
)


class TestDecideTransition:
    """The decision table over (locally_resolved, remotely_resolved)."""

    @pytest.mark.parametrize(
        "locally_resolved, remotely_resolved, expected",
        [
            (True, False, Resolve(RESOLVE_TRANSITION_ID, RESOLVE_COMMENT)),
            (False, True, Reopen(REOPEN_TRANSITION_ID, REOPEN_COMMENT)),
            (True, True, NoOp()),
            (False, False, NoOp()),
        ],
    )
    def test_decision_table(self, locally_resolved, remotely_resolved, expected):
        assert decide_transition(locally_resolved, remotely_resolved) == expected

    def test_transition_ids(self):
        assert decide_transition(True, False).transition_id == "2"
        assert decide_transition(False, True).transition_id == "3"

    def test_applying_the_decision_converges(self):
        """After the transition the same inputs yield NoOp."""
        for local in (True, False):
            for remote in (True, False):
                decision = decide_transition(local, remote)
                if isinstance(decision, Resolve):
                    remote = True
                elif isinstance(decision, Reopen):
                    remote = False
                assert decide_transition(local, remote) == NoOp()


class TestTransitionBody:
    """Request body sent to the tracker's transition endpoint."""

    def test_resolve_body(self):
        body = transition_body(decide_transition(True, False))

        assert body == {
            "update": {
                "comment": [
                    {"add": {"body": "This CR has been marked as resolved in Crashlytics"}}
                ]
            },
            "transition": {"id": "2"},
        }

    def test_reopen_body(self):
        body = transition_body(decide_transition(False, True))

        assert body["transition"] == {"id": "3"}
        assert body["update"]["comment"][0]["add"]["body"] == (
            "This CR has been reopened in Crashlytics"
        )
