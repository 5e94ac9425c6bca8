"""Tests du cycle de vie / Inspection lifecycle tests."""

import pytest
from conftest import NOW, checklist_template, make_photo, with_defect_photos

from liftcheck.models.inspection import (
    DefectSeverity,
    InspectionStatus,
    ItemOutcome,
    OperationalStatus,
    RectificationTimeframe,
    UnresolvedStatus,
)
from liftcheck.schemas.inspection import Defect
from liftcheck.services import state_machine
from liftcheck.services.actions import (
    AnswerItem,
    CarryForward,
    Complete,
    CompleteWithStatus,
    MarkDefect,
    MarkPass,
    PassAllInSection,
    Reopen,
    SaveDefectDetails,
    SaveDraft,
    SetComment,
    SetCraneStatus,
    SetNextInspectionDate,
    dispatch,
)
from liftcheck.services.errors import ErrorKind, Rejected

CRITICAL_NOW = Defect(
    severity=DefectSeverity.CRITICAL,
    rectification_timeframe=RectificationTimeframe.IMMEDIATELY,
)


def start(template):
    return state_machine.start_inspection(template, "crane-1", "tech-1", inspection_id="i1", now=NOW)


def run(inspection, template, *actions):
    for action in actions:
        inspection = dispatch(inspection, template, action, now=NOW)
        assert not isinstance(inspection, Rejected), inspection
    return inspection


def pass_all(inspection, template):
    return run(inspection, template, *(PassAllInSection(s.id) for s in template.sections))


def answer_details(inspection, template):
    """Repondre aux items non-checklist obligatoires / Answer required non-checklist items."""
    inspection = run(inspection, template, AnswerItem("access", "Yes"))
    row = inspection.get_item("nameplate")
    with_photo = row.model_copy(update={"photos": (make_photo("np"),), "result": ItemOutcome.PASS})
    return state_machine.update_item(inspection, "nameplate", with_photo)


def test_start_creates_one_row_per_item(template):
    inspection = start(template)
    assert inspection.status == InspectionStatus.IN_PROGRESS
    assert inspection.template_version == template.version
    assert [r.template_item_id for r in inspection.items] == [i.id for _, i in template.iter_items()]
    assert all(r.result is None for r in inspection.items)


def test_start_resumes_active_inspection(template):
    active = start(template)
    again = state_machine.start_inspection(template, "crane-1", "tech-2", active=active)
    assert again is active


def test_start_after_completed_creates_new(template):
    done = start(template).model_copy(update={"status": InspectionStatus.COMPLETED})
    fresh = state_machine.start_inspection(template, "crane-1", "tech-1", active=done)
    assert fresh.id != done.id


def test_incomplete_inspection_rejected():
    template = checklist_template(30)
    inspection = start(template)
    for i in range(1, 30):
        inspection = run(inspection, template, MarkPass(f"c{i}"))

    rejected = state_machine.complete(inspection, template)
    assert rejected.kind == ErrorKind.INCOMPLETE_INSPECTION
    assert rejected.detail["unanswered"] == ["c30"]
    assert rejected.detail["answered"] == 29
    assert rejected.detail["total"] == 30
    assert inspection.status == InspectionStatus.IN_PROGRESS


def test_complete_all_pass_is_safe():
    template = checklist_template(30)
    inspection = pass_all(start(template), template)
    done = state_machine.complete(inspection, template, now=NOW)
    assert done.status == InspectionStatus.COMPLETED
    assert done.completed_at == NOW
    assert done.crane_status == OperationalStatus.SAFE


def test_optional_items_do_not_gate_completion(template):
    inspection = answer_details(pass_all(start(template), template), template)
    done = state_machine.complete(inspection, template)
    assert done.status == InspectionStatus.COMPLETED


def test_conditional_comment_gates_completion(template):
    inspection = answer_details(pass_all(start(template), template), template)
    inspection = run(inspection, template, AnswerItem("access", "No"))
    assert state_machine.complete(inspection, template).kind == ErrorKind.INCOMPLETE_INSPECTION

    inspection = run(inspection, template, SetComment("access", "Blocked by racking", conditional=True))
    assert state_machine.complete(inspection, template).status == InspectionStatus.COMPLETED


def test_draft_defect_blocks_completion():
    template = checklist_template(4)
    inspection = run(pass_all(start(template), template), template, MarkDefect("c1"))
    rejected = state_machine.complete(inspection, template)
    assert rejected.kind == ErrorKind.MISSING_REQUIRED_PHOTO
    assert rejected.detail["template_item_ids"] == ["c1"]


def test_minor_defect_requires_status_pick():
    template = checklist_template(4)
    inspection = with_defect_photos(pass_all(start(template), template), "c2")
    inspection = run(inspection, template, SaveDefectDetails("c2", Defect(notes="worn")))
    rejected = state_machine.complete(inspection, template)
    assert rejected.kind == ErrorKind.OPERATIONAL_STATUS_REQUIRED
    assert rejected.detail["template_item_ids"] == ["c2"]

    done = dispatch(inspection, template, CompleteWithStatus(OperationalStatus.LIMITATIONS))
    assert done.status == InspectionStatus.COMPLETED
    assert done.crane_status == OperationalStatus.LIMITATIONS
    assert done.crane_status_overridden is True


def test_critical_defect_escalates_and_completes_unsafe():
    template = checklist_template(4)
    inspection = with_defect_photos(pass_all(start(template), template), "c3")
    inspection = run(inspection, template, SaveDefectDetails("c3", CRITICAL_NOW))
    assert inspection.crane_status == OperationalStatus.UNSAFE
    assert inspection.crane_status_overridden is False

    done = state_machine.complete(inspection, template)
    assert done.crane_status == OperationalStatus.UNSAFE


def test_override_survives_edits_and_reopen():
    template = checklist_template(4)
    inspection = run(pass_all(start(template), template), template, SetCraneStatus(OperationalStatus.LIMITATIONS))
    inspection = run(with_defect_photos(inspection, "c1"), template, SaveDefectDetails("c1", CRITICAL_NOW))
    assert inspection.crane_status == OperationalStatus.LIMITATIONS

    done = run(inspection, template, Complete())
    reopened = run(done, template, Reopen())
    assert reopened.status == InspectionStatus.IN_PROGRESS
    assert reopened.crane_status == OperationalStatus.LIMITATIONS
    assert reopened.crane_status_overridden is True
    assert reopened.last_edited_at == NOW


def test_carry_forward_unresolved_requires_pick():
    template = checklist_template(4)
    inspection = run(
        pass_all(start(template), template),
        template,
        CarryForward("c4", UnresolvedStatus.STILL_UNRESOLVED, has_previous_defect=True),
    )
    rejected = state_machine.complete(inspection, template)
    assert rejected.kind == ErrorKind.OPERATIONAL_STATUS_REQUIRED
    assert rejected.detail["reason"] == "unresolved_carry_forward"


def test_reopen_in_progress_rejected(template):
    rejected = state_machine.reopen(start(template))
    assert rejected.kind == ErrorKind.INVALID_TRANSITION


def test_complete_twice_rejected():
    template = checklist_template(2)
    done = run(pass_all(start(template), template), template, Complete())
    assert dispatch(done, template, Complete()).kind == ErrorKind.INVALID_TRANSITION


def test_edit_completed_rejected():
    template = checklist_template(2)
    done = run(pass_all(start(template), template), template, Complete())
    assert dispatch(done, template, MarkPass("c1")).kind == ErrorKind.INVALID_TRANSITION
    assert dispatch(done, template, SaveDraft()).kind == ErrorKind.INVALID_TRANSITION


def test_unknown_item_not_found(template):
    rejected = dispatch(start(template), template, MarkPass("nope"))
    assert rejected.kind == ErrorKind.NOT_FOUND


def test_row_count_never_changes(template):
    inspection = start(template)
    count = len(inspection.items)
    inspection = run(
        inspection, template,
        MarkPass("hook"), MarkDefect("rope"), MarkDefect("rope"), AnswerItem("hours", 12),
        PassAllInSection("sec-1"), SaveDraft(),
    )
    assert len(inspection.items) == count


def test_update_item_rejects_defect_without_defect_result(template):
    inspection = start(template)
    bad = inspection.get_item("hook").model_copy(update={"defect": Defect(photos=(make_photo(),))})
    assert state_machine.update_item(inspection, "hook", bad).kind == ErrorKind.INVALID_ANSWER


def test_pass_all_in_section_skips_unresolved_and_other_kinds(template):
    inspection = run(
        start(template), template,
        CarryForward("rope", UnresolvedStatus.STILL_UNRESOLVED, has_previous_defect=True),
        MarkDefect("brake"),
        PassAllInSection("sec-1"),
        PassAllInSection("sec-2"),
    )
    assert inspection.get_item("hook").result == ItemOutcome.PASS
    assert inspection.get_item("rope").result == ItemOutcome.UNRESOLVED
    assert inspection.get_item("brake").result == ItemOutcome.PASS
    assert inspection.get_item("brake").defect is None
    assert inspection.get_item("access").result is None


def test_pass_all_unknown_section(template):
    assert dispatch(start(template), template, PassAllInSection("nope")).kind == ErrorKind.NOT_FOUND


def test_next_inspection_date(template):
    inspection = run(start(template), template, SetNextInspectionDate("2026-06-02"))
    assert inspection.next_inspection_date == "2026-06-02"


def test_rejection_leaves_input_untouched(template):
    inspection = start(template)
    dispatch(inspection, template, AnswerItem("access", "Maybe"))
    assert inspection.get_item("access").selected_value is None


def test_unknown_action_raises(template):
    with pytest.raises(TypeError):
        dispatch(start(template), template, object())


@pytest.mark.parametrize("action", [
    MarkPass("access"),
    MarkDefect("hours"),
    SaveDefectDetails("notes", Defect(notes="rust"), photos=(make_photo(),)),
    CarryForward("load-test", UnresolvedStatus.RESOLVED, has_previous_defect=True),
    MarkDefect("nameplate"),
])
def test_pass_defect_actions_only_on_checklist_items(template, action):
    inspection = start(template)
    rejected = dispatch(inspection, template, action)
    assert rejected.kind == ErrorKind.INVALID_ANSWER
    assert rejected.detail["template_item_id"] == action.item_id
    assert inspection.get_item(action.item_id).result is None


def test_defect_details_use_photos_attached_at_apply_time(template):
    inspection = run(start(template), template, MarkDefect("rope"))
    action = SaveDefectDetails("rope", Defect(notes="kinked"))
    # Photos arrivees apres la construction de l'action / Photos land after the action was built
    inspection = with_defect_photos(inspection, "rope", "p1", "p2")

    saved = run(inspection, template, action)
    assert [p.id for p in saved.get_item("rope").defect.photos] == ["p1", "p2"]
    assert saved.get_item("rope").defect.notes == "kinked"


def test_defect_details_reject_photo_not_on_row(template):
    inspection = with_defect_photos(start(template), "rope", "p1")
    rejected = dispatch(inspection, template, SaveDefectDetails("rope", Defect(), photos=(make_photo("forged"),)))
    assert rejected.kind == ErrorKind.INVALID_ANSWER
    assert rejected.detail["photo_id"] == "forged"


def test_toggle_after_carry_forward_clears_unresolved_status(template):
    inspection = run(
        start(template), template,
        CarryForward("rope", UnresolvedStatus.STILL_UNRESOLVED, has_previous_defect=True),
        MarkPass("rope"),
        CarryForward("brake", UnresolvedStatus.STILL_UNRESOLVED, has_previous_defect=True),
        MarkDefect("brake"),
    )
    assert inspection.get_item("rope").result == ItemOutcome.PASS
    assert inspection.get_item("rope").unresolved_status is None
    assert inspection.get_item("brake").result == ItemOutcome.DEFECT
    assert inspection.get_item("brake").unresolved_status is None
