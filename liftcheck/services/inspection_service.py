"""
Service inspection / Inspection service.

Coquille mince : charger -> appliquer l'action -> sauvegarder (auto-save).
Thin shell around the engine: load, apply the action, save. Mutations of one
inspection are serialised with a per-inspection lock so that photo appends
are computed against the latest saved list. Starts and reopens of one asset
share a per-asset lock so that only one inspection is active at a time.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass

from liftcheck.models.inspection import InspectionStatus, OperationalStatus
from liftcheck.schemas.inspection import Inspection
from liftcheck.schemas.template import InspectionTemplate
from liftcheck.services import state_machine
from liftcheck.services.actions import Action, CompleteWithStatus, Reopen, SetCraneStatus, dispatch
from liftcheck.services.defect_rules import PhotoTarget, attach_photos
from liftcheck.services.errors import ErrorKind, RecordStoreError, Rejected
from liftcheck.services.photo_intake import DEFAULT_LIMITS, PhotoIntakeResult, PhotoLimits, PhotoUpload
from liftcheck.services.quote_projector import QuoteCandidate
from liftcheck.services.record_store import RecordStore, TemplateCatalog
from liftcheck.services.status_deriver import StatusDecision, derive_status

log = logging.getLogger(__name__)

# Verrous liberes des qu'aucune coroutine ne les tient / Locks vanish once nobody holds them
_inspection_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
_asset_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(locks: weakref.WeakValueDictionary, key: str) -> asyncio.Lock:
    lock = locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        locks[key] = lock
    return lock


@dataclass(frozen=True)
class PhotoBatchOutcome:
    inspection: Inspection
    intake: PhotoIntakeResult


class InspectionService:
    """Orchestration moteur + stockage / Engine + store orchestration."""

    def __init__(self, store: RecordStore, catalog: TemplateCatalog, limits: PhotoLimits = DEFAULT_LIMITS):
        self.store = store
        self.catalog = catalog
        self.limits = limits

    # --- Lecture / Reads ---

    async def get(self, inspection_id: str) -> Inspection | Rejected:
        inspection = await self.store.load_inspection(inspection_id)
        if inspection is None:
            return Rejected(ErrorKind.NOT_FOUND, "Inspection not found", {"inspection_id": inspection_id})
        return inspection

    async def get_with_template(self, inspection_id: str) -> tuple[Inspection, InspectionTemplate] | Rejected:
        inspection = await self.get(inspection_id)
        if isinstance(inspection, Rejected):
            return inspection
        template = await self.catalog.get_template(inspection.template_id, inspection.template_version)
        if template is None:
            return Rejected(
                ErrorKind.NOT_FOUND,
                "Template not found",
                {"template_id": inspection.template_id, "version": inspection.template_version},
            )
        return inspection, template

    async def list_inspections(
        self,
        asset_id: str | None = None,
        status: InspectionStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Inspection]:
        return await self.store.list_inspections(asset_id=asset_id, status=status, offset=offset, limit=limit)

    async def status_suggestion(self, inspection_id: str) -> StatusDecision | Rejected:
        inspection = await self.get(inspection_id)
        if isinstance(inspection, Rejected):
            return inspection
        return derive_status(inspection.items)

    async def quote_candidates(self, asset_id: str | None = None) -> list[QuoteCandidate]:
        return await self.store.list_quote_candidates(asset_id)

    # --- Cycle de vie / Lifecycle ---

    async def start(
        self,
        template_id: str,
        asset_id: str,
        technician_id: str,
        site_id: str | None = None,
    ) -> tuple[Inspection, bool] | Rejected:
        """Demarrer ou reprendre / Start, or resume the asset's active inspection.

        Returns ``(inspection, created)``.
        """
        template = await self.catalog.get_template(template_id)
        if template is None:
            return Rejected(ErrorKind.NOT_FOUND, "Template not found", {"template_id": template_id})

        async with _lock_for(_asset_locks, asset_id):
            active = await self.store.find_active_for_asset(asset_id)
            inspection = state_machine.start_inspection(
                template, asset_id, technician_id, active=active, site_id=site_id
            )
            if active is not None and inspection.id == active.id:
                log.info("Resuming inspection %s for asset %s", active.id, asset_id)
                return active, False

            try:
                await self.store.save_inspection(inspection)
            except RecordStoreError:
                # Demarre ailleurs entre-temps / Started by another process meanwhile
                active = await self.store.find_active_for_asset(asset_id)
                if active is None:
                    raise
                log.info("Resuming inspection %s for asset %s after a concurrent start", active.id, asset_id)
                return active, False

        log.info(
            "Started inspection %s for asset %s (template %s v%d, %d items)",
            inspection.id, asset_id, template.id, template.version, len(inspection.items),
        )
        return inspection, True

    async def apply(self, inspection_id: str, action: Action) -> Inspection | Rejected:
        """Appliquer une action puis sauvegarder / Apply one action, then auto-save."""
        async with _lock_for(_inspection_locks, inspection_id):
            loaded = await self.get_with_template(inspection_id)
            if isinstance(loaded, Rejected):
                return loaded
            inspection, template = loaded

            if not isinstance(action, Reopen):
                return await self._dispatch_and_save(inspection, template, action)
            async with _lock_for(_asset_locks, inspection.asset_id):
                active = await self.store.find_active_for_asset(inspection.asset_id)
                if active is not None and active.id != inspection.id:
                    log.warning("Inspection %s: reopen refused, %s is active for asset %s",
                                inspection_id, active.id, inspection.asset_id)
                    return Rejected(
                        ErrorKind.DUPLICATE_ACTIVE_INSPECTION,
                        "Another inspection is in progress for this asset",
                        {"asset_id": inspection.asset_id, "active_inspection_id": active.id},
                    )
                return await self._dispatch_and_save(inspection, template, action)

    async def _dispatch_and_save(
        self, inspection: Inspection, template: InspectionTemplate, action: Action
    ) -> Inspection | Rejected:
        updated = dispatch(inspection, template, action)
        if isinstance(updated, Rejected):
            log.warning(
                "Inspection %s: %s rejected (%s) %s",
                inspection.id, type(action).__name__, updated.kind.value, updated.message,
            )
            return updated

        await self.store.save_inspection(updated)
        self._log_transition(inspection, updated, action)
        return updated

    async def add_photos(
        self,
        inspection_id: str,
        item_id: str,
        target: PhotoTarget,
        uploads: list[PhotoUpload],
    ) -> PhotoBatchOutcome | Rejected:
        """Ajouter des photos a un item / Add a batch of photos to an item.

        The files are already read; the append is computed under the lock
        against the freshly loaded inspection.
        """
        async with _lock_for(_inspection_locks, inspection_id):
            loaded = await self.get_with_template(inspection_id)
            if isinstance(loaded, Rejected):
                return loaded
            inspection, template = loaded

            row = inspection.get_item(item_id)
            item = template.get_item(item_id)
            if row is None or item is None:
                return Rejected(ErrorKind.NOT_FOUND, f"Item '{item_id}' not found", {"template_item_id": item_id})

            attached = attach_photos(item, row, target, uploads, self.limits)
            if isinstance(attached, Rejected):
                return attached
            new_row, intake = attached
            for rejection in intake.rejected:
                log.warning("Inspection %s item %s: photo skipped (%s)", inspection_id, item_id, rejection.kind.value)

            if not intake.accepted:
                return PhotoBatchOutcome(inspection, intake)

            updated = state_machine.update_item(inspection, item_id, new_row)
            if isinstance(updated, Rejected):
                return updated
            await self.store.save_inspection(updated)
            return PhotoBatchOutcome(updated, intake)

    def _log_transition(self, before: Inspection, after: Inspection, action: Action) -> None:
        if before.status != after.status:
            log.info("Inspection %s: %s -> %s", after.id, before.status.value, after.status.value)
        if isinstance(action, (SetCraneStatus, CompleteWithStatus)):
            log.info("Inspection %s: crane status set to '%s' by technician", after.id, after.crane_status.value)
        elif before.crane_status != after.crane_status and after.crane_status == OperationalStatus.UNSAFE:
            log.info("Inspection %s: crane status escalated to '%s'", after.id, after.crane_status.value)
