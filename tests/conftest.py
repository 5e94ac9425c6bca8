"""Fixtures partagees / Shared test fixtures."""

import pytest

from liftcheck.models.inspection import ItemOutcome
from liftcheck.models.template import CraneType, InspectionType
from liftcheck.schemas.inspection import Inspection, PhotoRef
from liftcheck.schemas.template import (
    ChecklistItem,
    DateItem,
    InspectionTemplate,
    NumericItem,
    PhotoRequiredItem,
    SingleSelectItem,
    TemplateSection,
    TextItem,
)
from liftcheck.services import state_machine
from liftcheck.services.defect_rules import mark_defect
from liftcheck.services.inspection_service import InspectionService
from liftcheck.services.photo_intake import PhotoUpload
from liftcheck.services.record_store import InMemoryRecordStore, InMemoryTemplateCatalog

NOW = "2026-03-02T08:00:00+00:00"


def make_photo(photo_id: str = "p1") -> PhotoRef:
    return PhotoRef(id=photo_id, filename=f"{photo_id}.jpg", mime_type="image/jpeg", size_bytes=1024)


def make_upload(name: str = "a.jpg", mime: str = "image/jpeg", size: int = 2048) -> PhotoUpload:
    return PhotoUpload(filename=name, mime_type=mime, size_bytes=size, content=b"\xff\xd8" + b"0" * 16)


def with_defect_photos(inspection: Inspection, item_id: str, *photo_ids: str) -> Inspection:
    """Passer l'item en defaut avec photos deja stockees / Defect row whose photos are already uploaded."""
    row = inspection.get_item(item_id)
    if row.result != ItemOutcome.DEFECT:
        row = mark_defect(row)
    photos = row.defect.photos + tuple(make_photo(p) for p in photo_ids or ("p1",))
    row = row.model_copy(update={"defect": row.defect.model_copy(update={"photos": photos})})
    return state_machine.update_item(inspection, item_id, row)


def checklist_template(count: int = 30, template_id: str = "tpl-checklist") -> InspectionTemplate:
    """Template de `count` items checklist sur deux sections / Checklist-only template."""
    half = count // 2
    return InspectionTemplate(
        id=template_id,
        name="Checklist only",
        crane_type=CraneType.JIB_CRANE,
        inspection_type=InspectionType.ANNUAL,
        sections=(
            TemplateSection(id="sec-a", name="A", sort_order=1, items=tuple(
                ChecklistItem(id=f"c{i}", label=f"Check {i}", sort_order=i) for i in range(1, half + 1)
            )),
            TemplateSection(id="sec-b", name="B", sort_order=2, items=tuple(
                ChecklistItem(id=f"c{i}", label=f"Check {i}", sort_order=i) for i in range(half + 1, count + 1)
            )),
        ),
    )


@pytest.fixture
def template() -> InspectionTemplate:
    """Petit template mixte / Small template with every item kind."""
    return InspectionTemplate(
        id="tpl-mixed",
        name="Mixed",
        crane_type=CraneType.SINGLE_GIRDER_OVERHEAD,
        inspection_type=InspectionType.QUARTERLY,
        sections=(
            TemplateSection(id="sec-1", name="Hoist", sort_order=1, items=(
                ChecklistItem(id="hook", label="Hook latch", sort_order=1),
                ChecklistItem(id="rope", label="Wire rope", sort_order=2),
                ChecklistItem(id="brake", label="Hoist brake", sort_order=3),
            )),
            TemplateSection(id="sec-2", name="Details", sort_order=2, items=(
                SingleSelectItem(
                    id="access", label="Access OK?", sort_order=1,
                    options=("Yes", "No"), conditional_comment_on="No",
                ),
                NumericItem(id="hours", label="Hours", sort_order=2, required=False),
                DateItem(id="load-test", label="Load test", sort_order=3, required=False),
                TextItem(id="notes", label="Notes", sort_order=4, required=False),
                PhotoRequiredItem(id="nameplate", label="Nameplate photo", sort_order=5),
            )),
        ),
    )


@pytest.fixture
def catalog(template) -> InMemoryTemplateCatalog:
    return InMemoryTemplateCatalog([template, checklist_template()])


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def service(store, catalog) -> InspectionService:
    return InspectionService(store, catalog)
