"""Routes templates d'inspection / Inspection template routes."""

from fastapi import APIRouter, Depends, HTTPException

from liftcheck.api.deps import get_template_catalog
from liftcheck.schemas.template import InspectionTemplate, TemplateSummary
from liftcheck.services.record_store import TemplateCatalog

router = APIRouter()


def _summary(template: InspectionTemplate) -> TemplateSummary:
    return TemplateSummary(
        id=template.id,
        version=template.version,
        name=template.name,
        crane_type=template.crane_type.value,
        inspection_type=template.inspection_type.value,
        is_active=template.is_active,
        item_count=sum(1 for _ in template.iter_items()),
    )


@router.get("/", response_model=list[TemplateSummary])
async def list_templates(
    active_only: bool = True,
    catalog: TemplateCatalog = Depends(get_template_catalog),
):
    """Lister les templates (derniere version) / List templates at their latest version."""
    return [_summary(t) for t in await catalog.list_templates(active_only=active_only)]


@router.get("/{template_id}", response_model=InspectionTemplate)
async def get_template(
    template_id: str,
    version: int | None = None,
    catalog: TemplateCatalog = Depends(get_template_catalog),
):
    template = await catalog.get_template(template_id, version)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


@router.post("/", response_model=InspectionTemplate, status_code=201)
async def publish_template(
    data: InspectionTemplate,
    catalog: TemplateCatalog = Depends(get_template_catalog),
):
    """Publier une nouvelle version / Publish a new template version.

    Existing inspections keep the version they were started from.
    """
    return await catalog.publish_template(data)
