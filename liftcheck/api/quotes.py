"""Routes devis / Quote workflow routes."""

import io

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from liftcheck.api.deps import get_inspection_service
from liftcheck.services.export_service import QUOTE_FIELDS, ExportService
from liftcheck.services.inspection_service import InspectionService

router = APIRouter()


@router.get("/candidates")
async def list_candidates(
    asset_id: str | None = None,
    service: InspectionService = Depends(get_inspection_service),
):
    """Defauts marques "Quote Now" / Defects flagged "Quote Now"."""
    return ExportService.quote_rows(await service.quote_candidates(asset_id))


@router.get("/export")
async def export_candidates(
    format: str = Query("xlsx", pattern="^(csv|xlsx)$"),
    asset_id: str | None = None,
    service: InspectionService = Depends(get_inspection_service),
):
    """Exporter les defauts a chiffrer / Export quote candidates to CSV or XLSX."""
    rows = ExportService.quote_rows(await service.quote_candidates(asset_id))

    if format == "csv":
        content = ExportService.to_csv(rows, QUOTE_FIELDS)
        media_type = "text/csv; charset=utf-8"
        filename = "quote-candidates.csv"
    else:
        content = ExportService.to_xlsx(rows, QUOTE_FIELDS, sheet_name="Quotes")
        media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        filename = "quote-candidates.xlsx"

    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
