"""Seed template inspection par defaut / Seed the default crane inspection template.

Appele au demarrage si le catalogue est vide.
Called on startup if the template catalog is empty.
"""

import logging

from liftcheck.models.template import CraneType, InspectionType
from liftcheck.schemas.template import (
    ChecklistItem,
    DateItem,
    InspectionTemplate,
    NumericItem,
    SingleSelectItem,
    TemplateSection,
    TextItem,
)
from liftcheck.services.record_store import TemplateCatalog

log = logging.getLogger(__name__)

DEFAULT_TEMPLATE_ID = "sgo-quarterly"

# (section_id, name, [labels])
SEED_SECTIONS = [
    ("sec-structure", "Structure", [
        "Bridge girder - visual check for cracks, deformation or corrosion",
        "End carriages - check for damage, cracks or loose bolts",
        "Runway beams - check alignment and rail condition",
        "Supporting structure - check for visible distortion or movement",
        "Walkways and access - check condition and handrails secure",
    ]),
    ("sec-hoist", "Hoist", [
        "Wire rope - check for broken wires, kinks or corrosion",
        "Hook and hook block - check for wear, cracks or deformation",
        "Hook safety latch - operational check",
        "Hoist brake - functional test",
        "Drum and sheaves - check for wear and groove condition",
        "Load chain (if applicable) - check for wear and elongation",
    ]),
    ("sec-electrical", "Electrical", [
        "Pendant control - check buttons, labels and condition",
        "Festoon / cable reeling - check for damage or sag",
        "Isolator and main switch - operational check",
        "Warning devices - horn, lights functional test",
        "Wiring and connections - visual check for damage",
    ]),
    ("sec-travel", "Travel", [
        "Long travel - smooth operation, no abnormal noise",
        "Cross travel - smooth operation, no abnormal noise",
        "Travel wheels - check for wear and alignment",
        "Travel brakes - functional test",
        "Buffer stops - check condition and mounting",
    ]),
    ("sec-safety", "Safety", [
        "Overload protection - functional test",
        "Upper limit switch - functional test",
        "Lower limit switch - functional test",
        "Emergency stop - all E-stops functional",
        "Anti-collision (if fitted) - functional test",
    ]),
    ("sec-general", "General", [
        "Crane ID plate - legible and present",
        "SWL markings - clearly visible",
        "Lubrication - adequate across all points",
        "General cleanliness - crane and surrounding area",
    ]),
]


def build_default_template() -> InspectionTemplate:
    """Template grue pont monopoutre trimestriel / Single girder overhead, quarterly."""
    sections = []
    counter = 0
    for order, (section_id, name, labels) in enumerate(SEED_SECTIONS, 1):
        items = []
        for item_order, label in enumerate(labels, 1):
            counter += 1
            items.append(ChecklistItem(id=f"item-{counter}", label=label, sort_order=item_order))
        sections.append(TemplateSection(id=section_id, name=name, sort_order=order, items=tuple(items)))

    sections.append(TemplateSection(
        id="sec-details",
        name="Site Details",
        sort_order=len(sections) + 1,
        items=(
            SingleSelectItem(
                id="detail-access",
                label="Was full access to the crane available?",
                sort_order=1,
                options=("Yes", "No"),
                conditional_comment_on="No",
            ),
            NumericItem(id="detail-hours", label="Hour meter reading", sort_order=2, required=False),
            DateItem(id="detail-load-test", label="Date of last load test", sort_order=3, required=False),
            TextItem(id="detail-notes", label="General notes for the client", sort_order=4, required=False),
        ),
    ))

    return InspectionTemplate(
        id=DEFAULT_TEMPLATE_ID,
        name="Single Girder Overhead - Quarterly",
        crane_type=CraneType.SINGLE_GIRDER_OVERHEAD,
        inspection_type=InspectionType.QUARTERLY,
        sections=tuple(sections),
    )


async def seed_default_template(catalog: TemplateCatalog) -> None:
    """Publier le template par defaut si le catalogue est vide / Publish default template if catalog is empty."""
    existing = await catalog.list_templates(active_only=False)
    if existing:
        log.info("%d template(s) existant(s), seed ignore / %d existing template(s), seed skipped",
                 len(existing), len(existing))
        return
    published = await catalog.publish_template(build_default_template())
    log.info("Template par defaut cree / Default template created: %s v%d", published.id, published.version)
