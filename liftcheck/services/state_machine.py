"""
Cycle de vie d'une inspection / Inspection lifecycle.

Etats : in_progress -> completed -> (reopen) -> in_progress.
States: in_progress -> completed -> (reopen) -> in_progress. "Save draft"
persists the in_progress state and is not a state of its own.

Toutes les transitions sont pures : Inspection -> Inspection | Rejected.
Every transition is pure: a rejection leaves the input untouched.
"""

import uuid
from datetime import datetime, timezone

from liftcheck.models.inspection import InspectionStatus, ItemOutcome, OperationalStatus
from liftcheck.schemas.inspection import Inspection, InspectionItemResult
from liftcheck.schemas.template import ChecklistItem, InspectionTemplate
from liftcheck.services.defect_rules import is_answered, is_defect_complete
from liftcheck.services.errors import ErrorKind, Rejected
from liftcheck.services.status_deriver import Derived, apply_escalation, derive_status


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def start_inspection(
    template: InspectionTemplate,
    asset_id: str,
    technician_id: str,
    active: Inspection | None = None,
    site_id: str | None = None,
    inspection_id: str | None = None,
    now: str | None = None,
) -> Inspection:
    """Demarrer (ou reprendre) l'inspection d'un actif / Start (or resume) an asset's inspection.

    ``active`` is the asset's current inspection, if any. One that is not
    completed is returned as-is instead of creating a duplicate.
    """
    if active is not None and active.asset_id == asset_id and not active.is_completed:
        return active

    items = tuple(
        InspectionItemResult(template_item_id=item.id, section_id=section.id)
        for section, item in template.iter_items()
    )
    return Inspection(
        id=inspection_id or uuid.uuid4().hex,
        template_id=template.id,
        template_version=template.version,
        site_id=site_id,
        asset_id=asset_id,
        technician_id=technician_id,
        status=InspectionStatus.IN_PROGRESS,
        started_at=now or utc_now(),
        items=items,
    )


def update_item(
    inspection: Inspection,
    template_item_id: str,
    new_result: InspectionItemResult,
) -> Inspection | Rejected:
    """Remplacer une ligne puis re-evaluer l'escalade / Replace one row, then re-run escalation."""
    if inspection.is_completed:
        return Rejected(
            ErrorKind.INVALID_TRANSITION,
            "Inspection is completed; reopen it before editing",
            {"inspection_id": inspection.id},
        )
    current = inspection.get_item(template_item_id)
    if current is None:
        return Rejected(
            ErrorKind.NOT_FOUND,
            f"Item '{template_item_id}' is not part of this inspection",
            {"inspection_id": inspection.id, "template_item_id": template_item_id},
        )
    if (new_result.template_item_id, new_result.section_id) != (current.template_item_id, current.section_id):
        return Rejected(
            ErrorKind.INVALID_ANSWER,
            "Result row keys do not match the item being updated",
            {"template_item_id": template_item_id},
        )
    has_defect = new_result.defect is not None
    if has_defect != (new_result.result == ItemOutcome.DEFECT):
        return Rejected(
            ErrorKind.INVALID_ANSWER,
            "A defect record exists only on rows whose result is 'defect'",
            {"template_item_id": template_item_id},
        )

    items = tuple(new_result if i.template_item_id == template_item_id else i for i in inspection.items)
    return apply_escalation(inspection.model_copy(update={"items": items}))


def set_status(
    inspection: Inspection,
    status: OperationalStatus,
    overridden: bool = True,
) -> Inspection:
    """Fixer le statut operationnel par une action humaine / Set the operational status by hand."""
    return inspection.model_copy(update={"crane_status": status, "crane_status_overridden": overridden})


def unanswered_items(inspection: Inspection, template: InspectionTemplate) -> list[str]:
    """Items obligatoires sans reponse / Required items still unanswered."""
    missing = []
    for row in inspection.items:
        item = template.get_item(row.template_item_id)
        if item is None:
            if row.result is None:
                missing.append(row.template_item_id)
            continue
        if item.required and not is_answered(item, row):
            missing.append(row.template_item_id)
    return missing


def complete(
    inspection: Inspection,
    template: InspectionTemplate,
    now: str | None = None,
) -> Inspection | Rejected:
    """Finaliser l'inspection / Complete the inspection.

    Rejected while any required item is unanswered, while a defect still has
    no photo, or while defects leave the operational status undecided.
    """
    if inspection.is_completed:
        return Rejected(
            ErrorKind.INVALID_TRANSITION, "Inspection is already completed", {"inspection_id": inspection.id}
        )

    missing = unanswered_items(inspection, template)
    if missing:
        return Rejected(
            ErrorKind.INCOMPLETE_INSPECTION,
            f"{len(missing)} item(s) still unanswered",
            {
                "unanswered": missing,
                "answered": len(inspection.items) - len(missing),
                "total": len(inspection.items),
            },
        )

    draft_defects = [i.template_item_id for i in inspection.defect_items() if not is_defect_complete(i.defect)]
    if draft_defects:
        return Rejected(
            ErrorKind.MISSING_REQUIRED_PHOTO,
            "Every defect needs at least one photo before completion",
            {"template_item_ids": draft_defects},
        )

    crane_status = inspection.crane_status
    if crane_status is None:
        decision = derive_status(inspection.items)
        if not isinstance(decision, Derived):
            return Rejected(
                ErrorKind.OPERATIONAL_STATUS_REQUIRED,
                "Defects found: choose the crane operational status before completing",
                {"reason": decision.reason.value, "template_item_ids": list(decision.item_ids)},
            )
        crane_status = decision.status

    return inspection.model_copy(update={
        "status": InspectionStatus.COMPLETED,
        "completed_at": now or utc_now(),
        "crane_status": crane_status,
    })


def complete_with_status(
    inspection: Inspection,
    template: InspectionTemplate,
    status: OperationalStatus,
    now: str | None = None,
) -> Inspection | Rejected:
    """Choix humain du statut puis finalisation / Human status pick followed by completion."""
    return complete(set_status(inspection, status, overridden=True), template, now=now)


def reopen(inspection: Inspection, now: str | None = None) -> Inspection | Rejected:
    """Rouvrir une inspection terminee / Reopen a completed inspection.

    Keeps the operational status and its override flag.
    """
    if not inspection.is_completed:
        return Rejected(
            ErrorKind.INVALID_TRANSITION,
            "Only a completed inspection can be reopened",
            {"inspection_id": inspection.id, "status": inspection.status.value},
        )
    return inspection.model_copy(update={
        "status": InspectionStatus.IN_PROGRESS,
        "last_edited_at": now or utc_now(),
    })


def save_draft(inspection: Inspection) -> Inspection | Rejected:
    if inspection.is_completed:
        return Rejected(
            ErrorKind.INVALID_TRANSITION, "A completed inspection cannot be saved as a draft",
            {"inspection_id": inspection.id},
        )
    return inspection


def pass_all_in_section(
    inspection: Inspection,
    template: InspectionTemplate,
    section_id: str,
) -> Inspection | Rejected:
    """Passer tous les items checklist d'une section / Pass every checklist row of a section."""
    if inspection.is_completed:
        return Rejected(
            ErrorKind.INVALID_TRANSITION,
            "Inspection is completed; reopen it before editing",
            {"inspection_id": inspection.id},
        )
    section = template.get_section(section_id)
    if section is None:
        return Rejected(ErrorKind.NOT_FOUND, f"Section '{section_id}' not found", {"section_id": section_id})

    checklist_ids = {item.id for item in section.items if isinstance(item, ChecklistItem)}
    items = tuple(
        row.model_copy(update={"result": ItemOutcome.PASS, "defect": None})
        if row.template_item_id in checklist_ids and row.result in (None, ItemOutcome.DEFECT)
        else row
        for row in inspection.items
    )
    return apply_escalation(inspection.model_copy(update={"items": items}))
