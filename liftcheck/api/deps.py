"""
Dépendances des routes / Route dependencies.
Injectées dans les routes via Depends().
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from liftcheck.database import get_db
from liftcheck.services.errors import ErrorKind, Rejected
from liftcheck.services.inspection_service import InspectionService
from liftcheck.services.record_store import SqlRecordStore, SqlTemplateCatalog

# Code HTTP par type d'erreur / HTTP status per error kind
_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.OPERATIONAL_STATUS_REQUIRED: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_ACTIVE_INSPECTION: status.HTTP_409_CONFLICT,
}


def get_template_catalog(db: AsyncSession = Depends(get_db)) -> SqlTemplateCatalog:
    return SqlTemplateCatalog(db)


def get_inspection_service(db: AsyncSession = Depends(get_db)) -> InspectionService:
    """Service adosse a la session courante / Service bound to the request's DB session."""
    return InspectionService(SqlRecordStore(db), SqlTemplateCatalog(db))


async def get_technician_id(
    x_technician_id: str = Header(..., alias="X-Technician-ID"),
) -> str:
    """Identifier le technicien via le header X-Technician-ID / Identify the technician from X-Technician-ID."""
    if not x_technician_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-Technician-ID header")
    return x_technician_id.strip()


def rejection_to_http(rejected: Rejected) -> HTTPException:
    code = _STATUS_BY_KIND.get(rejected.kind, status.HTTP_422_UNPROCESSABLE_ENTITY)
    return HTTPException(status_code=code, detail=rejected.as_dict())


def unwrap(outcome):
    """Lever une HTTPException pour un Rejected / Raise an HTTPException for a Rejected outcome."""
    if isinstance(outcome, Rejected):
        raise rejection_to_http(outcome)
    return outcome
