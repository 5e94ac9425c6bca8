"""Modele inspection grue / Crane inspection model.

Une inspection = une ligne de resultat par item du template, creee au demarrage.
An inspection = one result row per template item, created at start and only
ever updated afterwards.
"""

import enum

from sqlalchemy import JSON, Boolean, Enum, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from liftcheck.database import Base


class InspectionStatus(str, enum.Enum):
    """Statut inspection / Inspection status."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ItemOutcome(str, enum.Enum):
    """Resultat item inspection / Inspection item result."""
    PASS = "pass"
    DEFECT = "defect"
    UNRESOLVED = "unresolved"


class UnresolvedStatus(str, enum.Enum):
    """Re-controle d'un defaut precedent / Re-check of a previous defect."""
    STILL_UNRESOLVED = "still_unresolved"
    RESOLVED = "resolved"


class DefectType(str, enum.Enum):
    MECHANICAL = "Mechanical"
    ELECTRICAL = "Electrical"
    STRUCTURAL = "Structural"
    SAFETY_DEVICE = "Safety Device"
    OPERATIONAL = "Operational"
    COSMETIC = "Cosmetic"


class DefectSeverity(str, enum.Enum):
    MINOR = "Minor"
    MAJOR = "Major"
    CRITICAL = "Critical"


class RectificationTimeframe(str, enum.Enum):
    IMMEDIATELY = "Immediately"
    WITHIN_7_DAYS = "Within 7 Days"
    WITHIN_30_DAYS = "Within 30 Days"
    BEFORE_NEXT_SERVICE = "Before Next Service"


class QuoteStatus(str, enum.Enum):
    QUOTE_NOW = "Quote Now"
    QUOTE_LATER = "Quote Later"


class OperationalStatus(str, enum.Enum):
    """Verdict de securite de la grue / Crane operational status."""
    SAFE = "Safe to Operate"
    LIMITATIONS = "Operate with Limitations"
    UNSAFE = "Unsafe to Operate"


class InspectionRecord(Base):
    """Inspection d'une grue / Crane inspection."""
    __tablename__ = "inspections"
    # Une seule inspection active par grue / At most one active inspection per asset
    __table_args__ = (
        Index(
            "uq_inspections_active_asset", "asset_id", unique=True,
            sqlite_where=text("status != 'COMPLETED'"),
            postgresql_where=text("status != 'COMPLETED'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    template_id: Mapped[str] = mapped_column(String(64), nullable=False)
    template_version: Mapped[int] = mapped_column(Integer, nullable=False)
    site_id: Mapped[str | None] = mapped_column(String(64))
    asset_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    technician_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[InspectionStatus] = mapped_column(
        Enum(InspectionStatus), default=InspectionStatus.IN_PROGRESS
    )
    started_at: Mapped[str] = mapped_column(String(32), nullable=False)  # ISO 8601
    completed_at: Mapped[str | None] = mapped_column(String(32))
    last_edited_at: Mapped[str | None] = mapped_column(String(32))
    crane_status: Mapped[OperationalStatus | None] = mapped_column(Enum(OperationalStatus))
    crane_status_overridden: Mapped[bool] = mapped_column(Boolean, default=False)
    next_inspection_date: Mapped[str | None] = mapped_column(String(10))

    # Relations
    items: Mapped[list["InspectionItemRecord"]] = relationship(
        back_populates="inspection", cascade="all, delete-orphan", order_by="InspectionItemRecord.position"
    )

    def __repr__(self) -> str:
        return f"<InspectionRecord {self.id} - {self.status.value} - asset {self.asset_id}>"


class InspectionItemRecord(Base):
    """Resultat d'un item d'inspection / Individual inspection item result."""
    __tablename__ = "inspection_item_results"
    __table_args__ = (UniqueConstraint("inspection_id", "template_item_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    inspection_id: Mapped[str] = mapped_column(ForeignKey("inspections.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    template_item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    section_id: Mapped[str] = mapped_column(String(64), nullable=False)
    result: Mapped[ItemOutcome | None] = mapped_column(Enum(ItemOutcome))
    comment: Mapped[str | None] = mapped_column(Text)
    selected_value: Mapped[str | None] = mapped_column(String(150))
    conditional_comment: Mapped[str | None] = mapped_column(Text)
    numeric_value: Mapped[float | None] = mapped_column(Float)
    date_value: Mapped[str | None] = mapped_column(String(10))
    text_value: Mapped[str | None] = mapped_column(Text)
    unresolved_status: Mapped[UnresolvedStatus | None] = mapped_column(Enum(UnresolvedStatus))
    # Copie du flag devis du defaut, pour requeter les candidats / Defect quote flag, queryable
    quote_status: Mapped[QuoteStatus | None] = mapped_column(Enum(QuoteStatus), index=True)
    # Listes de photos et defaut embarque (JSON) / Photo lists and embedded defect (JSON)
    photos: Mapped[list] = mapped_column(JSON, default=list)
    unresolved_photos: Mapped[list] = mapped_column(JSON, default=list)
    defect: Mapped[dict | None] = mapped_column(JSON)

    # Relations
    inspection: Mapped["InspectionRecord"] = relationship(back_populates="items")

    def __repr__(self) -> str:
        outcome = self.result.value if self.result else "unanswered"
        return f"<InspectionItemRecord {self.template_item_id} - {outcome}>"
