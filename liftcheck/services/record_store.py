"""
Stockage des inspections et templates / Inspection record store and template catalog.

Deux implementations : memoire (tests, embarque) et SQLAlchemy async.
Two implementations: in-memory (tests, embedding) and SQLAlchemy async.
Store failures are raised and never retried here.
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from liftcheck.models.inspection import InspectionItemRecord, InspectionRecord, InspectionStatus, QuoteStatus
from liftcheck.models.template import InspectionTemplateRecord
from liftcheck.schemas.inspection import Defect, Inspection, InspectionItemResult, PhotoRef
from liftcheck.schemas.template import InspectionTemplate, TemplateSection
from liftcheck.services.errors import RecordStoreError
from liftcheck.services.quote_projector import QuoteCandidate, quote_candidates

log = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def load_inspection(self, inspection_id: str) -> Inspection | None: ...

    async def save_inspection(self, inspection: Inspection) -> None: ...

    async def find_active_for_asset(self, asset_id: str) -> Inspection | None: ...

    async def list_inspections(
        self,
        asset_id: str | None = None,
        status: InspectionStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Inspection]: ...

    async def list_quote_candidates(self, asset_id: str | None = None) -> list[QuoteCandidate]: ...


class TemplateCatalog(Protocol):
    async def get_template(self, template_id: str, version: int | None = None) -> InspectionTemplate | None: ...

    async def list_templates(self, active_only: bool = True) -> list[InspectionTemplate]: ...

    async def publish_template(self, template: InspectionTemplate) -> InspectionTemplate: ...


def _next_version_of(template: InspectionTemplate, latest: int | None) -> InspectionTemplate:
    return template.model_copy(update={
        "version": (latest or 0) + 1,
        "created_at": template.created_at or datetime.now(timezone.utc).isoformat(timespec="seconds"),
    })


# ─── Memoire / In-memory ───

class InMemoryRecordStore:
    def __init__(self):
        self._inspections: dict[str, Inspection] = {}

    async def load_inspection(self, inspection_id: str) -> Inspection | None:
        return self._inspections.get(inspection_id)

    async def save_inspection(self, inspection: Inspection) -> None:
        existing = self._inspections.get(inspection.id)
        if existing is not None and len(existing.items) != len(inspection.items):
            raise RecordStoreError(f"Inspection {inspection.id}: item rows cannot be added or removed")
        self._inspections[inspection.id] = inspection

    async def find_active_for_asset(self, asset_id: str) -> Inspection | None:
        for inspection in self._inspections.values():
            if inspection.asset_id == asset_id and not inspection.is_completed:
                return inspection
        return None

    async def list_inspections(
        self,
        asset_id: str | None = None,
        status: InspectionStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Inspection]:
        found = sorted(
            (
                i for i in self._inspections.values()
                if (asset_id is None or i.asset_id == asset_id) and (status is None or i.status == status)
            ),
            key=lambda i: i.started_at,
            reverse=True,
        )
        return found[offset:] if limit is None else found[offset:offset + limit]

    async def list_quote_candidates(self, asset_id: str | None = None) -> list[QuoteCandidate]:
        return quote_candidates(
            i for i in self._inspections.values() if asset_id is None or i.asset_id == asset_id
        )


class InMemoryTemplateCatalog:
    def __init__(self, templates: list[InspectionTemplate] | None = None):
        self._templates: dict[tuple[str, int], InspectionTemplate] = {}
        for template in templates or []:
            self._templates[(template.id, template.version)] = template

    async def get_template(self, template_id: str, version: int | None = None) -> InspectionTemplate | None:
        if version is not None:
            return self._templates.get((template_id, version))
        versions = [t for (tid, _), t in self._templates.items() if tid == template_id]
        return max(versions, key=lambda t: t.version) if versions else None

    async def list_templates(self, active_only: bool = True) -> list[InspectionTemplate]:
        latest: dict[str, InspectionTemplate] = {}
        for (tid, version), template in sorted(self._templates.items()):
            latest[tid] = template
        return [t for t in latest.values() if t.is_active or not active_only]

    async def publish_template(self, template: InspectionTemplate) -> InspectionTemplate:
        current = await self.get_template(template.id)
        published = _next_version_of(template, current.version if current else None)
        self._templates[(published.id, published.version)] = published
        return published


# ─── SQLAlchemy ───

_ITEM_FIELDS = (
    "section_id", "result", "comment", "selected_value", "conditional_comment",
    "numeric_value", "date_value", "text_value", "unresolved_status",
)


def _photos_to_json(photos: tuple[PhotoRef, ...]) -> list[dict]:
    return [p.model_dump(mode="json") for p in photos]


def _item_from_record(rec: InspectionItemRecord) -> InspectionItemResult:
    return InspectionItemResult(
        template_item_id=rec.template_item_id,
        section_id=rec.section_id,
        result=rec.result,
        comment=rec.comment,
        photos=tuple(PhotoRef.model_validate(p) for p in rec.photos or []),
        selected_value=rec.selected_value,
        conditional_comment=rec.conditional_comment,
        numeric_value=rec.numeric_value,
        date_value=rec.date_value,
        text_value=rec.text_value,
        unresolved_status=rec.unresolved_status,
        unresolved_photos=tuple(PhotoRef.model_validate(p) for p in rec.unresolved_photos or []),
        defect=Defect.model_validate(rec.defect) if rec.defect else None,
    )


def _inspection_from_record(rec: InspectionRecord) -> Inspection:
    return Inspection(
        id=rec.id,
        template_id=rec.template_id,
        template_version=rec.template_version,
        site_id=rec.site_id,
        asset_id=rec.asset_id,
        technician_id=rec.technician_id,
        status=rec.status,
        started_at=rec.started_at,
        completed_at=rec.completed_at,
        last_edited_at=rec.last_edited_at,
        items=tuple(_item_from_record(i) for i in rec.items),
        crane_status=rec.crane_status,
        crane_status_overridden=rec.crane_status_overridden,
        next_inspection_date=rec.next_inspection_date,
    )


def _copy_item_onto(rec: InspectionItemRecord, item: InspectionItemResult) -> None:
    for field in _ITEM_FIELDS:
        setattr(rec, field, getattr(item, field))
    rec.photos = _photos_to_json(item.photos)
    rec.unresolved_photos = _photos_to_json(item.unresolved_photos)
    rec.defect = item.defect.model_dump(mode="json") if item.defect else None
    rec.quote_status = item.defect.quote_status if item.is_defect and item.defect else None


class SqlRecordStore:
    """Stockage SQL des inspections / SQL-backed inspection store."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _query(self):
        return select(InspectionRecord).options(selectinload(InspectionRecord.items))

    async def load_inspection(self, inspection_id: str) -> Inspection | None:
        result = await self.session.execute(self._query().where(InspectionRecord.id == inspection_id))
        rec = result.scalar_one_or_none()
        return _inspection_from_record(rec) if rec else None

    async def save_inspection(self, inspection: Inspection) -> None:
        result = await self.session.execute(self._query().where(InspectionRecord.id == inspection.id))
        rec = result.scalar_one_or_none()
        if rec is None:
            # Lignes creees une seule fois / Rows are created exactly once
            rec = InspectionRecord(id=inspection.id, items=[
                InspectionItemRecord(position=pos, template_item_id=item.template_item_id, section_id=item.section_id)
                for pos, item in enumerate(inspection.items)
            ])
            self.session.add(rec)
        elif len(rec.items) != len(inspection.items):
            raise RecordStoreError(f"Inspection {inspection.id}: item rows cannot be added or removed")

        for field in (
            "template_id", "template_version", "site_id", "asset_id", "technician_id", "status",
            "started_at", "completed_at", "last_edited_at", "crane_status", "crane_status_overridden",
            "next_inspection_date",
        ):
            setattr(rec, field, getattr(inspection, field))

        by_item_id = {r.template_item_id: r for r in rec.items}
        for item in inspection.items:
            _copy_item_onto(by_item_id[item.template_item_id], item)

        # Auto-save : chaque sauvegarde est durable / Each save is committed
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise RecordStoreError(f"Inspection {inspection.id}: {e.orig}") from e

    async def find_active_for_asset(self, asset_id: str) -> Inspection | None:
        result = await self.session.execute(
            self._query()
            .where(InspectionRecord.asset_id == asset_id, InspectionRecord.status != InspectionStatus.COMPLETED)
            .order_by(InspectionRecord.started_at.desc())
            .limit(1)
        )
        rec = result.scalar_one_or_none()
        return _inspection_from_record(rec) if rec else None

    async def list_inspections(
        self,
        asset_id: str | None = None,
        status: InspectionStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Inspection]:
        query = self._query().order_by(InspectionRecord.started_at.desc(), InspectionRecord.id)
        if asset_id is not None:
            query = query.where(InspectionRecord.asset_id == asset_id)
        if status is not None:
            query = query.where(InspectionRecord.status == status)
        query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return [_inspection_from_record(r) for r in result.scalars().all()]

    async def list_quote_candidates(self, asset_id: str | None = None) -> list[QuoteCandidate]:
        """Lignes "Quote Now" lues directement / Quote Now rows read straight from the item table."""
        query = (
            select(InspectionItemRecord, InspectionRecord)
            .join(InspectionRecord, InspectionItemRecord.inspection_id == InspectionRecord.id)
            .where(InspectionItemRecord.quote_status == QuoteStatus.QUOTE_NOW)
            .order_by(InspectionRecord.started_at, InspectionRecord.id, InspectionItemRecord.position)
        )
        if asset_id is not None:
            query = query.where(InspectionRecord.asset_id == asset_id)
        result = await self.session.execute(query)
        return [
            QuoteCandidate(
                inspection_id=inspection.id,
                site_id=inspection.site_id,
                asset_id=inspection.asset_id,
                template_item_id=item.template_item_id,
                section_id=item.section_id,
                defect=Defect.model_validate(item.defect),
            )
            for item, inspection in result.all()
        ]


def _template_from_record(rec: InspectionTemplateRecord) -> InspectionTemplate:
    return InspectionTemplate(
        id=rec.id,
        version=rec.version,
        name=rec.name,
        crane_type=rec.crane_type,
        inspection_type=rec.inspection_type,
        is_active=rec.is_active,
        created_at=rec.created_at,
        sections=tuple(TemplateSection.model_validate(s) for s in rec.sections),
    )


class SqlTemplateCatalog:
    """Catalogue SQL des templates / SQL-backed template catalog."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_template(self, template_id: str, version: int | None = None) -> InspectionTemplate | None:
        query = select(InspectionTemplateRecord).where(InspectionTemplateRecord.id == template_id)
        if version is not None:
            query = query.where(InspectionTemplateRecord.version == version)
        result = await self.session.execute(query.order_by(InspectionTemplateRecord.version.desc()).limit(1))
        rec = result.scalar_one_or_none()
        return _template_from_record(rec) if rec else None

    async def list_templates(self, active_only: bool = True) -> list[InspectionTemplate]:
        latest = (
            select(InspectionTemplateRecord.id, func.max(InspectionTemplateRecord.version).label("version"))
            .group_by(InspectionTemplateRecord.id)
            .subquery()
        )
        query = select(InspectionTemplateRecord).join(
            latest,
            (InspectionTemplateRecord.id == latest.c.id) & (InspectionTemplateRecord.version == latest.c.version),
        )
        if active_only:
            query = query.where(InspectionTemplateRecord.is_active == True)  # noqa: E712
        result = await self.session.execute(query.order_by(InspectionTemplateRecord.id))
        return [_template_from_record(r) for r in result.scalars().all()]

    async def publish_template(self, template: InspectionTemplate) -> InspectionTemplate:
        current = await self.get_template(template.id)
        published = _next_version_of(template, current.version if current else None)
        self.session.add(InspectionTemplateRecord(
            id=published.id,
            version=published.version,
            name=published.name,
            crane_type=published.crane_type,
            inspection_type=published.inspection_type,
            is_active=published.is_active,
            created_at=published.created_at,
            sections=[s.model_dump(mode="json") for s in published.sections],
        ))
        await self.session.flush()
        log.info("Published template %s v%d", published.id, published.version)
        return published
