"""
Actions technicien / Technician actions.

Chaque action est une petite valeur ; ``dispatch`` l'applique a l'inspection.
Each action is a small value; ``dispatch`` applies it to an inspection and
returns the new inspection or a ``Rejected``. Persisting is the caller's job.
"""

from dataclasses import dataclass
from typing import Any, Union

from liftcheck.models.inspection import OperationalStatus, QuoteStatus, UnresolvedStatus
from liftcheck.schemas.inspection import Defect, Inspection, PhotoRef
from liftcheck.schemas.template import ChecklistItem, InspectionTemplate
from liftcheck.services import defect_rules, state_machine
from liftcheck.services.defect_rules import PhotoTarget
from liftcheck.services.errors import ErrorKind, Rejected
from liftcheck.services.quote_projector import set_quote_status


@dataclass(frozen=True)
class MarkPass:
    item_id: str


@dataclass(frozen=True)
class MarkDefect:
    item_id: str


@dataclass(frozen=True)
class SaveDefectDetails:
    """``photos=None`` keeps whatever the draft defect holds when applied."""
    item_id: str
    defect: Defect
    photos: tuple[PhotoRef, ...] | None = None


@dataclass(frozen=True)
class CarryForward:
    item_id: str
    choice: UnresolvedStatus
    has_previous_defect: bool


@dataclass(frozen=True)
class AnswerItem:
    item_id: str
    value: Any


@dataclass(frozen=True)
class SetComment:
    item_id: str
    comment: str | None
    conditional: bool = False


@dataclass(frozen=True)
class RemovePhoto:
    item_id: str
    target: PhotoTarget
    photo_id: str


@dataclass(frozen=True)
class PassAllInSection:
    section_id: str


@dataclass(frozen=True)
class SetCraneStatus:
    status: OperationalStatus


@dataclass(frozen=True)
class SetQuoteStatus:
    item_id: str
    quote_status: QuoteStatus


@dataclass(frozen=True)
class SetNextInspectionDate:
    next_inspection_date: str | None


@dataclass(frozen=True)
class Complete:
    pass


@dataclass(frozen=True)
class CompleteWithStatus:
    status: OperationalStatus


@dataclass(frozen=True)
class Reopen:
    pass


@dataclass(frozen=True)
class SaveDraft:
    pass


ItemAction = Union[MarkPass, MarkDefect, SaveDefectDetails, CarryForward, AnswerItem, SetComment, RemovePhoto]

Action = Union[
    ItemAction,
    PassAllInSection,
    SetCraneStatus,
    SetQuoteStatus,
    SetNextInspectionDate,
    Complete,
    CompleteWithStatus,
    Reopen,
    SaveDraft,
]


# Pass/defect/carry-forward only make sense on checklist rows
CHECKLIST_ACTIONS = (MarkPass, MarkDefect, SaveDefectDetails, CarryForward)


def _apply_item_action(inspection: Inspection, template: InspectionTemplate, action: ItemAction):
    row = inspection.get_item(action.item_id)
    item = template.get_item(action.item_id)
    if row is None or item is None:
        return Rejected(
            ErrorKind.NOT_FOUND,
            f"Item '{action.item_id}' not found",
            {"inspection_id": inspection.id, "template_item_id": action.item_id},
        )
    if isinstance(action, CHECKLIST_ACTIONS) and not isinstance(item, ChecklistItem):
        return Rejected(
            ErrorKind.INVALID_ANSWER,
            f"Item '{action.item_id}' is a {item.kind} item, pass/defect applies to checklist items only",
            {"template_item_id": action.item_id, "kind": item.kind},
        )

    if isinstance(action, MarkPass):
        new_row = defect_rules.mark_pass(row)
    elif isinstance(action, MarkDefect):
        new_row = defect_rules.mark_defect(row)
    elif isinstance(action, SaveDefectDetails):
        photos = action.photos
        if photos is None:
            photos = row.defect.photos if row.defect is not None else ()
        details = action.defect.model_copy(update={"photos": tuple(photos)})
        new_row = defect_rules.save_defect_details(row, details)
    elif isinstance(action, CarryForward):
        new_row = defect_rules.mark_unresolved_carry_forward(row, action.choice, action.has_previous_defect)
    elif isinstance(action, AnswerItem):
        new_row = defect_rules.answer_item(item, row, action.value)
    elif isinstance(action, SetComment) and action.conditional:
        new_row = defect_rules.set_conditional_comment(item, row, action.comment)
    elif isinstance(action, SetComment):
        new_row = defect_rules.set_comment(row, action.comment)
    else:
        new_row = defect_rules.detach_photo(item, row, action.target, action.photo_id)

    if isinstance(new_row, Rejected):
        return new_row
    return state_machine.update_item(inspection, action.item_id, new_row)


def dispatch(
    inspection: Inspection,
    template: InspectionTemplate,
    action: Action,
    now: str | None = None,
) -> Inspection | Rejected:
    """Appliquer une action / Apply one action to an inspection."""
    if isinstance(action, (MarkPass, MarkDefect, SaveDefectDetails, CarryForward, AnswerItem, SetComment, RemovePhoto)):
        return _apply_item_action(inspection, template, action)
    if isinstance(action, PassAllInSection):
        return state_machine.pass_all_in_section(inspection, template, action.section_id)
    if isinstance(action, SetCraneStatus):
        return state_machine.set_status(inspection, action.status, overridden=True)
    if isinstance(action, SetQuoteStatus):
        return set_quote_status(inspection, action.item_id, action.quote_status)
    if isinstance(action, SetNextInspectionDate):
        return inspection.model_copy(update={"next_inspection_date": action.next_inspection_date})
    if isinstance(action, Complete):
        return state_machine.complete(inspection, template, now=now)
    if isinstance(action, CompleteWithStatus):
        return state_machine.complete_with_status(inspection, template, action.status, now=now)
    if isinstance(action, Reopen):
        return state_machine.reopen(inspection, now=now)
    if isinstance(action, SaveDraft):
        return state_machine.save_draft(inspection)
    raise TypeError(f"Unknown action {action!r}")
