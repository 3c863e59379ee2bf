"""Unit tests for the paper status state machine"""

import pytest

from paperflow.auth.roles import UserRole
from paperflow.domain.papers import (
    TERMINAL_STATES,
    TRANSITIONS,
    PaperAction,
    PaperStatus,
    allowed_actions,
    allowed_actions_for_role,
    can_apply,
    is_terminal,
    target_status,
)


class TestPaperStatusEnum:
    """Test the closed status and action enumerations"""

    def test_status_values(self):
        assert [s.value for s in PaperStatus] == [
            "draft",
            "pending_moderation",
            "revision_required",
            "pending_approval",
            "approved",
            "rejected",
            "printed",
        ]

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            PaperStatus("archived")

    def test_every_action_has_exactly_one_row(self):
        assert set(TRANSITIONS) == set(PaperAction)
        for action, transition in TRANSITIONS.items():
            assert transition.action == action


class TestTransitionTable:
    """Test each edge of the workflow"""

    @pytest.mark.parametrize("action,current,expected", [
        (PaperAction.SUBMIT, PaperStatus.DRAFT, PaperStatus.PENDING_MODERATION),
        (PaperAction.SUBMIT, PaperStatus.REVISION_REQUIRED, PaperStatus.PENDING_MODERATION),
        (PaperAction.REQUEST_REVISION, PaperStatus.PENDING_MODERATION, PaperStatus.REVISION_REQUIRED),
        (PaperAction.EXAMINER_APPROVE, PaperStatus.PENDING_MODERATION, PaperStatus.PENDING_APPROVAL),
        (PaperAction.HOD_APPROVE, PaperStatus.PENDING_APPROVAL, PaperStatus.APPROVED),
        (PaperAction.MARK_PRINTED, PaperStatus.APPROVED, PaperStatus.PRINTED),
        (PaperAction.REVISE_UPLOAD, PaperStatus.DRAFT, PaperStatus.PENDING_MODERATION),
        (PaperAction.REVISE_UPLOAD, PaperStatus.REVISION_REQUIRED, PaperStatus.PENDING_MODERATION),
        (PaperAction.UPDATE, PaperStatus.DRAFT, PaperStatus.DRAFT),
    ])
    def test_valid_edges(self, action, current, expected):
        assert can_apply(action, current) is True
        assert target_status(action, current) == expected

    def test_update_with_new_attachment_goes_to_moderation(self):
        assert target_status(PaperAction.UPDATE, PaperStatus.DRAFT, attachment_replaced=True) == \
            PaperStatus.PENDING_MODERATION

    def test_delete_has_no_target(self):
        assert can_apply(PaperAction.DELETE, PaperStatus.DRAFT) is True
        assert can_apply(PaperAction.DELETE, PaperStatus.REVISION_REQUIRED) is True
        assert target_status(PaperAction.DELETE, PaperStatus.DRAFT) is None

    def test_submit_twice_is_invalid(self):
        """Second submit finds the paper already in pending_moderation"""
        assert can_apply(PaperAction.SUBMIT, PaperStatus.PENDING_MODERATION) is False

    def test_update_only_in_draft(self):
        for status in PaperStatus:
            assert can_apply(PaperAction.UPDATE, status) is (status == PaperStatus.DRAFT)

    def test_delete_only_before_moderation(self):
        assert can_apply(PaperAction.DELETE, PaperStatus.PENDING_APPROVAL) is False
        assert can_apply(PaperAction.DELETE, PaperStatus.PENDING_MODERATION) is False
        assert can_apply(PaperAction.DELETE, PaperStatus.APPROVED) is False

    def test_no_action_produces_rejected(self):
        assert all(t.to_state != PaperStatus.REJECTED for t in TRANSITIONS.values())

    def test_draft_never_gets_an_examiner(self):
        """Examiner-setting actions never start from draft"""
        for transition in TRANSITIONS.values():
            if transition.sets_examiner:
                assert PaperStatus.DRAFT not in transition.from_states

    def test_revision_always_requires_comment(self):
        into_revision = [t for t in TRANSITIONS.values() if t.to_state == PaperStatus.REVISION_REQUIRED]
        assert into_revision
        assert all(t.requires_comment for t in into_revision)


class TestTerminalStates:

    def test_printed_and_rejected_are_terminal(self):
        assert TERMINAL_STATES == frozenset({PaperStatus.PRINTED, PaperStatus.REJECTED})
        assert is_terminal(PaperStatus.PRINTED)
        assert is_terminal("rejected")
        assert not is_terminal(PaperStatus.APPROVED)

    def test_nothing_allowed_from_printed(self):
        assert allowed_actions(PaperStatus.PRINTED) == []


class TestAllowedActions:

    def test_allowed_from_draft(self):
        assert allowed_actions(PaperStatus.DRAFT) == [
            PaperAction.SUBMIT,
            PaperAction.REVISE_UPLOAD,
            PaperAction.UPDATE,
            PaperAction.DELETE,
        ]

    def test_allowed_for_role(self):
        assert allowed_actions_for_role(PaperStatus.PENDING_MODERATION, UserRole.EXAMINER) == [
            PaperAction.REQUEST_REVISION,
            PaperAction.EXAMINER_APPROVE,
        ]
        assert allowed_actions_for_role(PaperStatus.PENDING_MODERATION, UserRole.LECTURER) == []
        assert allowed_actions_for_role(PaperStatus.APPROVED, UserRole.HOD) == [PaperAction.MARK_PRINTED]
