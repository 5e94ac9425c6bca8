"""
Regles de defaut et de reponse / Defect resolution and answer rules.

Fonctions pures sur une ligne de resultat : chacune renvoie une nouvelle ligne
ou un ``Rejected`` sans rien modifier.
Pure functions over one result row: each returns a new row or a ``Rejected``
and never mutates its input.
"""

import enum
import math
from datetime import date

from liftcheck.models.inspection import ItemOutcome, UnresolvedStatus
from liftcheck.schemas.inspection import Defect, InspectionItemResult, PhotoRef
from liftcheck.schemas.template import (
    ChecklistItem,
    DateItem,
    NumericItem,
    PhotoRequiredItem,
    SingleSelectItem,
    TemplateItem,
    TextItem,
)
from liftcheck.services.errors import ErrorKind, Rejected
from liftcheck.services.photo_intake import (
    DEFAULT_LIMITS,
    PhotoIntakeResult,
    PhotoLimits,
    PhotoUpload,
    check_photo_ref,
    intake_photos,
    remove_photo,
)


class PhotoTarget(str, enum.Enum):
    """Liste de photos visee / Which photo list of a row is targeted."""
    ITEM = "item"
    DEFECT = "defect"
    UNRESOLVED = "unresolved"


# --- Checklist: pass / defect ---

def mark_pass(result: InspectionItemResult) -> InspectionItemResult:
    """Basculer PASS <-> non repondu / Toggle between pass and unanswered.

    Any embedded defect and carry-forward decision are dropped either way.
    """
    new_outcome = None if result.result == ItemOutcome.PASS else ItemOutcome.PASS
    return result.model_copy(update={"result": new_outcome, "defect": None, "unresolved_status": None})


def mark_defect(result: InspectionItemResult) -> InspectionItemResult:
    """Basculer DEFECT <-> non repondu / Toggle between defect and unanswered.

    A fresh defect is a draft: default severity and timeframe, no photos yet.
    """
    if result.result == ItemOutcome.DEFECT:
        return result.model_copy(update={"result": None, "defect": None, "unresolved_status": None})
    return result.model_copy(update={"result": ItemOutcome.DEFECT, "defect": Defect(), "unresolved_status": None})


def is_defect_complete(defect: Defect | None) -> bool:
    """Un defaut n'est enregistrable qu'avec au moins une photo / A defect needs at least one photo."""
    return defect is not None and len(defect.photos) >= 1


def save_defect_details(
    result: InspectionItemResult,
    details: Defect,
    limits: PhotoLimits = DEFAULT_LIMITS,
) -> InspectionItemResult | Rejected:
    """Enregistrer le detail du defaut / Save defect details onto the row.

    Every photo must already be attached to the row, as an item photo or on
    the draft defect. The stored references replace the ones sent in.
    """
    if not is_defect_complete(details):
        return Rejected(
            ErrorKind.MISSING_REQUIRED_PHOTO,
            "At least one photo is required to save a defect",
            {"template_item_id": result.template_item_id},
        )
    if len(details.photos) > limits.max_photos:
        return Rejected(
            ErrorKind.PHOTO_LIMIT_EXCEEDED,
            f"Max {limits.max_photos} photos per defect",
            {"template_item_id": result.template_item_id, "count": len(details.photos)},
        )
    known = {p.id: p for p in result.photos}
    if result.defect is not None:
        known.update((p.id, p) for p in result.defect.photos)
    for ref in details.photos:
        rejected = check_photo_ref(ref, limits)
        if rejected is not None:
            return rejected
        if ref.id not in known:
            return Rejected(
                ErrorKind.INVALID_ANSWER,
                f"Photo '{ref.id}' was not uploaded for this item",
                {"template_item_id": result.template_item_id, "photo_id": ref.id},
            )
    stored = tuple(known[ref.id] for ref in details.photos)
    return result.model_copy(update={
        "result": ItemOutcome.DEFECT,
        "defect": details.model_copy(update={"photos": stored}),
    })


# --- Carry-forward of a defect from a previous inspection cycle ---

def mark_unresolved_carry_forward(
    result: InspectionItemResult,
    choice: UnresolvedStatus,
    has_previous_defect: bool,
) -> InspectionItemResult | Rejected:
    """Statuer sur un defaut herite / Settle a defect carried over from a previous cycle.

    ``has_previous_defect`` comes from the caller's cross-inspection history.
    Photos already gathered in ``unresolved_photos`` are kept as evidence for
    both choices.
    """
    if not has_previous_defect:
        return Rejected(
            ErrorKind.INVALID_ANSWER,
            "Item has no defect from a previous inspection to carry forward",
            {"template_item_id": result.template_item_id},
        )
    outcome = ItemOutcome.UNRESOLVED if choice == UnresolvedStatus.STILL_UNRESOLVED else ItemOutcome.PASS
    return result.model_copy(update={
        "result": outcome,
        "unresolved_status": choice,
        "defect": None,
    })


# --- Non-checklist kinds ---

def answer_item(
    item: TemplateItem,
    result: InspectionItemResult,
    value,
) -> InspectionItemResult | Rejected:
    """Repondre a un item non-checklist / Answer a single_select, numeric, date or text item.

    ``None`` (or a blank string) clears the answer.
    """
    if isinstance(item, SingleSelectItem):
        if value is None or value == "":
            return result.model_copy(update={
                "selected_value": None, "conditional_comment": None, "result": None,
            })
        if value not in item.options:
            return _invalid(result, f"'{value}' is not one of {list(item.options)}")
        update = {"selected_value": value, "result": ItemOutcome.PASS}
        if value != item.conditional_comment_on:
            update["conditional_comment"] = None
        return result.model_copy(update=update)

    if isinstance(item, NumericItem):
        if value is None or value == "":
            return result.model_copy(update={"numeric_value": None, "result": None})
        try:
            number = float(value)
        except (TypeError, ValueError):
            return _invalid(result, f"'{value}' is not a number")
        if not math.isfinite(number):
            return _invalid(result, "Numeric value must be finite")
        return result.model_copy(update={"numeric_value": number, "result": ItemOutcome.PASS})

    if isinstance(item, DateItem):
        if value is None or value == "":
            return result.model_copy(update={"date_value": None, "result": None})
        try:
            parsed = value if isinstance(value, date) else date.fromisoformat(str(value))
        except ValueError:
            return _invalid(result, f"'{value}' is not an ISO date (YYYY-MM-DD)")
        return result.model_copy(update={"date_value": parsed.isoformat(), "result": ItemOutcome.PASS})

    if isinstance(item, TextItem):
        text = "" if value is None else str(value)
        return result.model_copy(update={
            "text_value": text or None,
            "result": ItemOutcome.PASS if text.strip() else None,
        })

    return _invalid(result, f"Items of kind '{item.kind}' are not answered with a value")


def set_conditional_comment(
    item: TemplateItem,
    result: InspectionItemResult,
    comment: str | None,
) -> InspectionItemResult | Rejected:
    if not isinstance(item, SingleSelectItem) or item.conditional_comment_on is None:
        return _invalid(result, "Item has no conditional comment")
    text = (comment or "").strip() or None
    return result.model_copy(update={"conditional_comment": text})


def set_comment(result: InspectionItemResult, comment: str | None) -> InspectionItemResult:
    return result.model_copy(update={"comment": (comment or "").strip() or None})


def is_answered(item: TemplateItem, result: InspectionItemResult) -> bool:
    """L'item compte-t-il comme repondu ? / Does the row count as answered?"""
    if isinstance(item, ChecklistItem):
        return result.result is not None
    if isinstance(item, SingleSelectItem):
        if result.selected_value is None:
            return False
        if item.conditional_comment_on is not None and result.selected_value == item.conditional_comment_on:
            return bool((result.conditional_comment or "").strip())
        return True
    if isinstance(item, NumericItem):
        return result.numeric_value is not None
    if isinstance(item, DateItem):
        return result.date_value is not None
    if isinstance(item, TextItem):
        return bool((result.text_value or "").strip())
    if isinstance(item, PhotoRequiredItem):
        return len(result.photos) >= 1
    return result.result is not None


# --- Photos ---

def _photos_for(result: InspectionItemResult, target: PhotoTarget) -> tuple[PhotoRef, ...] | Rejected:
    if target == PhotoTarget.ITEM:
        return result.photos
    if target == PhotoTarget.DEFECT:
        if not result.is_defect or result.defect is None:
            return _invalid(result, "Item is not marked as a defect")
        return result.defect.photos
    return result.unresolved_photos


def _with_photos(
    item: TemplateItem,
    result: InspectionItemResult,
    target: PhotoTarget,
    photos: tuple[PhotoRef, ...],
) -> InspectionItemResult:
    if target == PhotoTarget.DEFECT:
        return result.model_copy(update={"defect": result.defect.model_copy(update={"photos": photos})})
    if target == PhotoTarget.UNRESOLVED:
        return result.model_copy(update={"unresolved_photos": photos})
    update = {"photos": photos}
    if isinstance(item, PhotoRequiredItem):
        update["result"] = ItemOutcome.PASS if photos else None
    return result.model_copy(update=update)


def attach_photos(
    item: TemplateItem,
    result: InspectionItemResult,
    target: PhotoTarget,
    uploads: list[PhotoUpload],
    limits: PhotoLimits = DEFAULT_LIMITS,
    now: str | None = None,
) -> tuple[InspectionItemResult, PhotoIntakeResult] | Rejected:
    """Ajouter un lot de photos a une ligne / Append a photo batch to one of the row's lists."""
    current = _photos_for(result, target)
    if isinstance(current, Rejected):
        return current
    intake = intake_photos(current, uploads, limits, now=now)
    if not intake.accepted:
        return result, intake
    return _with_photos(item, result, target, intake.photos), intake


def detach_photo(
    item: TemplateItem,
    result: InspectionItemResult,
    target: PhotoTarget,
    photo_id: str,
) -> InspectionItemResult | Rejected:
    current = _photos_for(result, target)
    if isinstance(current, Rejected):
        return current
    remaining = remove_photo(current, photo_id)
    if isinstance(remaining, Rejected):
        return remaining
    return _with_photos(item, result, target, remaining)


def _invalid(result: InspectionItemResult, message: str) -> Rejected:
    return Rejected(ErrorKind.INVALID_ANSWER, message, {"template_item_id": result.template_item_id})
