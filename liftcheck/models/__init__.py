"""
Modèles SQLAlchemy / SQLAlchemy models.
Importer tous les modèles ici pour que Base.metadata les détecte.
Import all models here so Base.metadata can detect them.
"""

from liftcheck.models.template import CraneType, InspectionTemplateRecord, InspectionType
from liftcheck.models.inspection import (
    DefectSeverity,
    DefectType,
    InspectionItemRecord,
    InspectionRecord,
    InspectionStatus,
    ItemOutcome,
    OperationalStatus,
    QuoteStatus,
    RectificationTimeframe,
    UnresolvedStatus,
)

__all__ = [
    "CraneType",
    "InspectionType",
    "InspectionTemplateRecord",
    "InspectionStatus",
    "ItemOutcome",
    "UnresolvedStatus",
    "DefectType",
    "DefectSeverity",
    "RectificationTimeframe",
    "QuoteStatus",
    "OperationalStatus",
    "InspectionRecord",
    "InspectionItemRecord",
]
