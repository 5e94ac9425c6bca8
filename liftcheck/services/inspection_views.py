"""
Vues de lecture sur une inspection / Read views over an inspection.
"""

from dataclasses import dataclass

from liftcheck.schemas.inspection import Inspection
from liftcheck.schemas.template import InspectionTemplate
from liftcheck.services.defect_rules import is_answered


@dataclass(frozen=True)
class SectionProgress:
    section_id: str
    name: str
    answered: int
    total: int


@dataclass(frozen=True)
class InspectionProgress:
    answered: int
    total: int
    sections: tuple[SectionProgress, ...]

    @property
    def all_answered(self) -> bool:
        return self.answered == self.total


def progress(inspection: Inspection, template: InspectionTemplate) -> InspectionProgress:
    """Avancement global et par section / Overall and per-section progress."""
    sections = []
    for section in template.ordered_sections():
        answered = 0
        for item in section.items:
            row = inspection.get_item(item.id)
            if row is not None and is_answered(item, row):
                answered += 1
        sections.append(SectionProgress(section.id, section.name, answered, len(section.items)))
    return InspectionProgress(
        answered=sum(s.answered for s in sections),
        total=sum(s.total for s in sections),
        sections=tuple(sections),
    )


def defect_summary(inspection: Inspection, template: InspectionTemplate) -> list[dict]:
    """Registre des defauts de l'inspection / Defect register of the inspection."""
    rows = []
    for row in inspection.defect_items():
        item = template.get_item(row.template_item_id)
        defect = row.defect
        rows.append({
            "template_item_id": row.template_item_id,
            "section_id": row.section_id,
            "label": item.label if item else "",
            "defect_type": defect.defect_type.value,
            "severity": defect.severity.value,
            "rectification_timeframe": defect.rectification_timeframe.value,
            "recommended_action": defect.recommended_action,
            "notes": defect.notes,
            "photo_count": len(defect.photos),
            "quote_status": defect.quote_status.value if defect.quote_status else None,
        })
    return rows
