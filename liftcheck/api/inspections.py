"""Routes inspections grue / Crane inspection routes."""

from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile
from fastapi.responses import FileResponse

from liftcheck.api.deps import get_inspection_service, get_technician_id, unwrap
from liftcheck.config import settings
from liftcheck.models.inspection import InspectionStatus
from liftcheck.rate_limit import limiter
from liftcheck.schemas.inspection import (
    AnswerRequest,
    CarryForwardRequest,
    CommentRequest,
    CompleteRequest,
    CraneStatusRequest,
    Defect,
    DefectDetailsRequest,
    Inspection,
    InspectionStartRequest,
    NextInspectionRequest,
    PhotoBatchRead,
    ProgressRead,
    QuoteStatusRequest,
    SectionProgressRead,
    StatusSuggestionRead,
)
from liftcheck.services.actions import (
    AnswerItem,
    CarryForward,
    Complete,
    CompleteWithStatus,
    MarkDefect,
    MarkPass,
    PassAllInSection,
    RemovePhoto,
    Reopen,
    SaveDefectDetails,
    SaveDraft,
    SetComment,
    SetCraneStatus,
    SetNextInspectionDate,
    SetQuoteStatus,
)
from liftcheck.services.defect_rules import PhotoTarget
from liftcheck.services.inspection_service import InspectionService
from liftcheck.services.inspection_views import defect_summary, progress
from liftcheck.services.photo_intake import PhotoUpload
from liftcheck.services.status_deriver import Derived

router = APIRouter()


def _photo_dir(inspection_id: str) -> Path:
    return Path(settings.PHOTO_STORAGE_DIR) / inspection_id


def _store_photo_files(inspection_id: str, accepted) -> None:
    """Ecrire les fichiers acceptes sur disque / Write accepted files to disk."""
    photo_dir = _photo_dir(inspection_id)
    photo_dir.mkdir(parents=True, exist_ok=True)
    for ref, upload in accepted:
        ext = ref.mime_type.split("/")[-1].replace("jpeg", "jpg")
        (photo_dir / f"{ref.id}.{ext}").write_bytes(upload.content or b"")


# ─── Lecture / Reads ───

@router.get("/", response_model=list[Inspection])
async def list_inspections(
    asset_id: str | None = None,
    status: InspectionStatus | None = None,
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    service: InspectionService = Depends(get_inspection_service),
):
    return await service.list_inspections(asset_id=asset_id, status=status, offset=offset, limit=limit)


@router.get("/{inspection_id}", response_model=Inspection)
async def get_inspection(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    return unwrap(await service.get(inspection_id))


@router.get("/{inspection_id}/progress", response_model=ProgressRead)
async def get_progress(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    """Avancement par section / Per-section progress."""
    inspection, template = unwrap(await service.get_with_template(inspection_id))
    p = progress(inspection, template)
    return ProgressRead(
        answered=p.answered,
        total=p.total,
        all_answered=p.all_answered,
        sections=[SectionProgressRead(**s.__dict__) for s in p.sections],
    )


@router.get("/{inspection_id}/status-suggestion", response_model=StatusSuggestionRead)
async def get_status_suggestion(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    """Statut derive ou choix requis / Derived status, or a human decision is required."""
    inspection = unwrap(await service.get(inspection_id))
    decision = unwrap(await service.status_suggestion(inspection_id))
    if isinstance(decision, Derived):
        return StatusSuggestionRead(
            requires_human_decision=False,
            status=decision.status,
            current_status=inspection.crane_status,
            overridden=inspection.crane_status_overridden,
        )
    return StatusSuggestionRead(
        requires_human_decision=True,
        reason=decision.reason.value,
        item_ids=list(decision.item_ids),
        current_status=inspection.crane_status,
        overridden=inspection.crane_status_overridden,
    )


@router.get("/{inspection_id}/defects")
async def get_defects(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    """Registre des defauts / Defect register."""
    inspection, template = unwrap(await service.get_with_template(inspection_id))
    return {
        "inspection_id": inspection.id,
        "crane_status": inspection.crane_status,
        "defects": defect_summary(inspection, template),
    }


# ─── Cycle de vie / Lifecycle ───

@router.post("/", response_model=Inspection, status_code=201)
async def start_inspection(
    data: InspectionStartRequest,
    response: Response,
    technician_id: str = Depends(get_technician_id),
    service: InspectionService = Depends(get_inspection_service),
):
    """Demarrer (ou reprendre) une inspection / Start (or resume) an inspection."""
    inspection, created = unwrap(await service.start(
        data.template_id, data.asset_id, technician_id, site_id=data.site_id,
    ))
    if not created:
        response.status_code = 200
    return inspection


@router.put("/{inspection_id}/crane-status", response_model=Inspection)
async def set_crane_status(
    inspection_id: str,
    data: CraneStatusRequest,
    service: InspectionService = Depends(get_inspection_service),
):
    return unwrap(await service.apply(inspection_id, SetCraneStatus(data.status)))


@router.put("/{inspection_id}/next-inspection", response_model=Inspection)
async def set_next_inspection(
    inspection_id: str,
    data: NextInspectionRequest,
    service: InspectionService = Depends(get_inspection_service),
):
    return unwrap(await service.apply(inspection_id, SetNextInspectionDate(data.next_inspection_date)))


@router.post("/{inspection_id}/complete", response_model=Inspection)
async def complete_inspection(
    inspection_id: str,
    data: CompleteRequest | None = None,
    service: InspectionService = Depends(get_inspection_service),
):
    """Finaliser l'inspection / Complete the inspection."""
    if data is not None and data.crane_status is not None:
        action = CompleteWithStatus(data.crane_status)
    else:
        action = Complete()
    return unwrap(await service.apply(inspection_id, action))


@router.post("/{inspection_id}/reopen", response_model=Inspection)
async def reopen_inspection(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    return unwrap(await service.apply(inspection_id, Reopen()))


@router.post("/{inspection_id}/save-draft", response_model=Inspection)
async def save_draft(
    inspection_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    return unwrap(await service.apply(inspection_id, SaveDraft()))


@router.post("/{inspection_id}/sections/{section_id}/pass-all", response_model=Inspection)
async def pass_all_in_section(
    inspection_id: str,
    section_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    return unwrap(await service.apply(inspection_id, PassAllInSection(section_id)))


# ─── Items ───

@router.post("/{inspection_id}/items/{item_id}/pass", response_model=Inspection)
async def mark_pass(
    inspection_id: str,
    item_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    """Basculer PASS / Toggle pass."""
    return unwrap(await service.apply(inspection_id, MarkPass(item_id)))


@router.post("/{inspection_id}/items/{item_id}/defect", response_model=Inspection)
async def mark_defect(
    inspection_id: str,
    item_id: str,
    service: InspectionService = Depends(get_inspection_service),
):
    """Basculer DEFECT / Toggle defect."""
    return unwrap(await service.apply(inspection_id, MarkDefect(item_id)))


@router.put("/{inspection_id}/items/{item_id}/defect-details", response_model=Inspection)
async def save_defect_details(
    inspection_id: str,
    item_id: str,
    data: DefectDetailsRequest,
    service: InspectionService = Depends(get_inspection_service),
):
    """Enregistrer le detail du defaut / Save defect details.

    Without ``photos`` the draft defect's photos are read under the inspection lock.
    """
    defect = Defect(
        defect_type=data.defect_type,
        severity=data.severity,
        rectification_timeframe=data.rectification_timeframe,
        recommended_action=data.recommended_action,
        notes=data.notes,
        quote_status=data.quote_status,
    )
    photos = tuple(data.photos) if data.photos is not None else None
    return unwrap(await service.apply(inspection_id, SaveDefectDetails(item_id, defect, photos)))


@router.post("/{inspection_id}/items/{item_id}/carry-forward", response_model=Inspection)
async def carry_forward(
    inspection_id: str,
    item_id: str,
    data: CarryForwardRequest,
    service: InspectionService = Depends(get_inspection_service),
):
    """Statuer sur un defaut precedent / Settle a defect from a previous inspection."""
    return unwrap(await service.apply(
        inspection_id, CarryForward(item_id, data.choice, data.has_previous_defect),
    ))


@router.put("/{inspection_id}/items/{item_id}/answer", response_model=Inspection)
async def answer_item(
    inspection_id: str,
    item_id: str,
    data: AnswerRequest,
    service: InspectionService = Depends(get_inspection_service),
):
    return unwrap(await service.apply(inspection_id, AnswerItem(item_id, data.value)))


@router.put("/{inspection_id}/items/{item_id}/comment", response_model=Inspection)
async def set_comment(
    inspection_id: str,
    item_id: str,
    data: CommentRequest,
    service: InspectionService = Depends(get_inspection_service),
):
    return unwrap(await service.apply(inspection_id, SetComment(item_id, data.comment, data.conditional)))


@router.put("/{inspection_id}/items/{item_id}/quote-status", response_model=Inspection)
async def set_quote_status(
    inspection_id: str,
    item_id: str,
    data: QuoteStatusRequest,
    service: InspectionService = Depends(get_inspection_service),
):
    return unwrap(await service.apply(inspection_id, SetQuoteStatus(item_id, data.quote_status)))


# ─── Photos ───

@router.post("/{inspection_id}/items/{item_id}/photos", response_model=PhotoBatchRead, status_code=201)
@limiter.limit(settings.RATE_LIMIT_PHOTOS)
async def upload_photos(
    request: Request,
    inspection_id: str,
    item_id: str,
    files: list[UploadFile] = File(...),
    target: PhotoTarget = Query(PhotoTarget.ITEM),
    service: InspectionService = Depends(get_inspection_service),
):
    """Upload photos pour un item / Upload a batch of photos for an item.

    Invalid files are skipped and reported; valid ones are kept.
    """
    uploads = []
    for file in files:
        content = await file.read()
        uploads.append(PhotoUpload(
            filename=file.filename or "photo",
            mime_type=file.content_type or "",
            size_bytes=len(content),
            content=content,
        ))

    outcome = unwrap(await service.add_photos(inspection_id, item_id, target, uploads))
    if outcome.intake.accepted:
        _store_photo_files(inspection_id, outcome.intake.accepted)
    return PhotoBatchRead(
        inspection=outcome.inspection,
        accepted=list(outcome.intake.accepted_refs),
        rejected=[r.as_dict() for r in outcome.intake.rejected],
    )


@router.delete("/{inspection_id}/items/{item_id}/photos/{photo_id}", response_model=Inspection)
async def delete_photo(
    inspection_id: str,
    item_id: str,
    photo_id: str,
    target: PhotoTarget = Query(PhotoTarget.ITEM),
    service: InspectionService = Depends(get_inspection_service),
):
    inspection = unwrap(await service.apply(inspection_id, RemovePhoto(item_id, target, photo_id)))
    # Le fichier suit la reference / The stored file goes with its reference
    for path in _photo_dir(inspection_id).glob(f"{photo_id}.*"):
        path.unlink(missing_ok=True)
    return inspection


@router.get("/{inspection_id}/photos/{photo_id}")
async def get_photo(inspection_id: str, photo_id: str):
    """Servir une photo d'inspection / Serve an inspection photo."""
    matches = sorted(_photo_dir(inspection_id).glob(f"{photo_id}.*"))
    if not matches:
        raise HTTPException(status_code=404, detail="Photo file missing")
    return FileResponse(matches[0])
