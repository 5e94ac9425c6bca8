"""Modele template inspection grue / Crane inspection template model.

Un template = sections ordonnees + items, versionne.
A template = ordered sections + items, versioned. A new version is a new row;
in-flight inspections keep pointing at the version they started with.
"""

import enum

from sqlalchemy import JSON, Boolean, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from liftcheck.database import Base


class CraneType(str, enum.Enum):
    """Type de grue / Crane type."""
    SINGLE_GIRDER_OVERHEAD = "Single Girder Overhead"
    DOUBLE_GIRDER_OVERHEAD = "Double Girder Overhead"
    JIB_CRANE = "Jib Crane"
    GANTRY_CRANE = "Gantry Crane"
    MONORAIL = "Monorail"


class InspectionType(str, enum.Enum):
    """Type d'inspection / Inspection type."""
    QUARTERLY = "Quarterly"
    ANNUAL = "Annual"
    PRE_USE = "Pre-Use"


class InspectionTemplateRecord(Base):
    """Version d'un template d'inspection / One version of an inspection template."""
    __tablename__ = "inspection_templates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    crane_type: Mapped[CraneType] = mapped_column(Enum(CraneType), nullable=False)
    inspection_type: Mapped[InspectionType] = mapped_column(Enum(InspectionType), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[str] = mapped_column(String(32), nullable=False)  # ISO 8601
    # Sections + items serialises (JSON) / Serialized sections + items
    sections: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<InspectionTemplateRecord {self.id} v{self.version} - {self.crane_type.value}>"
