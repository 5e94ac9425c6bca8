"""
Projection des defauts a chiffrer / Quote-flag projection.

Lecture pure pour le workflow de devis externe / Pure read for the external quoting workflow.
"""

from dataclasses import dataclass
from typing import Iterable

from liftcheck.models.inspection import QuoteStatus
from liftcheck.schemas.inspection import Defect, Inspection
from liftcheck.services.errors import ErrorKind, Rejected


@dataclass(frozen=True)
class QuoteCandidate:
    inspection_id: str
    site_id: str | None
    asset_id: str
    template_item_id: str
    section_id: str
    defect: Defect


def quote_candidates(inspections: Iterable[Inspection]) -> list[QuoteCandidate]:
    """Defauts "Quote Now" avec leur contexte / Quote Now defects with their context."""
    return [
        QuoteCandidate(
            inspection_id=inspection.id,
            site_id=inspection.site_id,
            asset_id=inspection.asset_id,
            template_item_id=row.template_item_id,
            section_id=row.section_id,
            defect=row.defect,
        )
        for inspection in inspections
        for row in inspection.defect_items()
        if row.defect.quote_status == QuoteStatus.QUOTE_NOW
    ]


def list_quote_candidates(inspections: Iterable[Inspection]) -> list[Defect]:
    return [c.defect for c in quote_candidates(inspections)]


def set_quote_status(inspection: Inspection, template_item_id: str, status) -> Inspection | Rejected:
    """Marquer un defaut pour devis / Flag a defect for quoting.

    Rows without a defect are left unchanged.
    """
    try:
        status = QuoteStatus(status)
    except ValueError:
        return Rejected(
            ErrorKind.INVALID_ANSWER,
            f"Quote status must be one of {[s.value for s in QuoteStatus]}",
            {"quote_status": str(status)},
        )
    items = tuple(
        row.model_copy(update={"defect": row.defect.model_copy(update={"quote_status": status})})
        if row.template_item_id == template_item_id and row.defect is not None
        else row
        for row in inspection.items
    )
    return inspection.model_copy(update={"items": items})
