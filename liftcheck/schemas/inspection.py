"""Schemas inspection grue / Crane inspection schemas.

Agregat manipule par le moteur : valeurs immuables, chaque action renvoie une copie.
Aggregate handled by the engine: immutable values, every action returns a copy.
"""

from pydantic import BaseModel, ConfigDict

from liftcheck.models.inspection import (
    DefectSeverity,
    DefectType,
    InspectionStatus,
    ItemOutcome,
    OperationalStatus,
    QuoteStatus,
    RectificationTimeframe,
    UnresolvedStatus,
)


class PhotoRef(BaseModel):
    """Reference vers une photo stockee / Reference to a stored photo."""
    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    mime_type: str
    size_bytes: int
    uploaded_at: str | None = None


class Defect(BaseModel):
    """Defaut attache a un item en echec / Defect attached to a failed checklist item."""
    model_config = ConfigDict(frozen=True)

    defect_type: DefectType = DefectType.MECHANICAL
    severity: DefectSeverity = DefectSeverity.MINOR
    rectification_timeframe: RectificationTimeframe = RectificationTimeframe.WITHIN_7_DAYS
    recommended_action: str = ""
    notes: str = ""
    photos: tuple[PhotoRef, ...] = ()
    quote_status: QuoteStatus | None = None

    @property
    def is_critical_immediate(self) -> bool:
        return (
            self.severity == DefectSeverity.CRITICAL
            and self.rectification_timeframe == RectificationTimeframe.IMMEDIATELY
        )


class InspectionItemResult(BaseModel):
    """Resultat d'un item, cle (section_id, template_item_id) / Item result row."""
    model_config = ConfigDict(frozen=True)

    template_item_id: str
    section_id: str
    result: ItemOutcome | None = None
    comment: str | None = None
    photos: tuple[PhotoRef, ...] = ()
    selected_value: str | None = None
    conditional_comment: str | None = None
    numeric_value: float | None = None
    date_value: str | None = None  # YYYY-MM-DD
    text_value: str | None = None
    unresolved_status: UnresolvedStatus | None = None
    unresolved_photos: tuple[PhotoRef, ...] = ()
    defect: Defect | None = None

    @property
    def is_defect(self) -> bool:
        return self.result == ItemOutcome.DEFECT

    @property
    def is_unresolved(self) -> bool:
        return self.result == ItemOutcome.UNRESOLVED


class Inspection(BaseModel):
    """Inspection d'une grue / One technician's pass through a template on one asset."""
    model_config = ConfigDict(frozen=True)

    id: str
    template_id: str
    template_version: int
    site_id: str | None = None
    asset_id: str
    technician_id: str
    status: InspectionStatus = InspectionStatus.IN_PROGRESS
    started_at: str
    completed_at: str | None = None
    last_edited_at: str | None = None
    items: tuple[InspectionItemResult, ...] = ()
    crane_status: OperationalStatus | None = None
    crane_status_overridden: bool = False
    next_inspection_date: str | None = None

    def get_item(self, template_item_id: str) -> InspectionItemResult | None:
        for item in self.items:
            if item.template_item_id == template_item_id:
                return item
        return None

    def defect_items(self) -> list[InspectionItemResult]:
        return [i for i in self.items if i.is_defect and i.defect is not None]

    @property
    def is_completed(self) -> bool:
        return self.status == InspectionStatus.COMPLETED


# --- Requetes API / API requests ---

class InspectionStartRequest(BaseModel):
    """Demarre une inspection / Start (or resume) an inspection."""
    template_id: str
    asset_id: str
    site_id: str | None = None


class DefectDetailsRequest(BaseModel):
    """Detail du defaut ; sans photos, celles du brouillon sont reprises.
    Defect details; when ``photos`` is omitted the draft defect's photos are used."""
    defect_type: DefectType
    severity: DefectSeverity
    rectification_timeframe: RectificationTimeframe
    recommended_action: str = ""
    notes: str = ""
    photos: list[PhotoRef] | None = None
    quote_status: QuoteStatus | None = None


class CarryForwardRequest(BaseModel):
    choice: UnresolvedStatus
    has_previous_defect: bool


class AnswerRequest(BaseModel):
    value: float | str | None = None


class CommentRequest(BaseModel):
    comment: str | None = None
    conditional: bool = False


class QuoteStatusRequest(BaseModel):
    quote_status: QuoteStatus


class CraneStatusRequest(BaseModel):
    status: OperationalStatus


class CompleteRequest(BaseModel):
    """Statut choisi par le technicien si des defauts existent / Technician's status pick when defects exist."""
    crane_status: OperationalStatus | None = None


class NextInspectionRequest(BaseModel):
    next_inspection_date: str | None = None  # YYYY-MM-DD


# --- Reponses API / API responses ---

class SectionProgressRead(BaseModel):
    section_id: str
    name: str
    answered: int
    total: int


class ProgressRead(BaseModel):
    answered: int
    total: int
    all_answered: bool
    sections: list[SectionProgressRead] = []


class StatusSuggestionRead(BaseModel):
    """Statut derive ou decision humaine requise / Derived status or human decision required."""
    requires_human_decision: bool
    status: OperationalStatus | None = None
    reason: str | None = None
    item_ids: list[str] = []
    current_status: OperationalStatus | None = None
    overridden: bool = False


class PhotoBatchRead(BaseModel):
    inspection: Inspection
    accepted: list[PhotoRef] = []
    rejected: list[dict] = []
