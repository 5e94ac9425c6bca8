"""
Statut operationnel de la grue / Crane operational status derivation.

Seuls "Safe" et "Unsafe" sont derivables automatiquement ; tout le reste
demande un choix humain. L'escalade vers Unsafe est automatique, jamais
le retour vers un statut plus favorable.
Only Safe and Unsafe can be derived; everything else needs a human pick.
Escalation to Unsafe is automatic, an improvement never is.
"""

import enum
from dataclasses import dataclass
from typing import Iterable, Union

from liftcheck.models.inspection import OperationalStatus
from liftcheck.schemas.inspection import Inspection, InspectionItemResult


class DecisionReason(str, enum.Enum):
    UNRESOLVED_CARRY_FORWARD = "unresolved_carry_forward"
    DEFECTS_PRESENT = "defects_present"


@dataclass(frozen=True)
class Derived:
    status: OperationalStatus


@dataclass(frozen=True)
class RequiresHumanDecision:
    reason: DecisionReason
    item_ids: tuple[str, ...] = ()


StatusDecision = Union[Derived, RequiresHumanDecision]


def derive_status(items: Iterable[InspectionItemResult]) -> StatusDecision:
    """Calculer le statut suggere / Compute the suggested operational status."""
    items = list(items)
    defects = [i for i in items if i.is_defect]
    unresolved = [i for i in items if i.is_unresolved]

    if not defects and not unresolved:
        return Derived(OperationalStatus.SAFE)

    if any(i.defect is not None and i.defect.is_critical_immediate for i in defects):
        return Derived(OperationalStatus.UNSAFE)

    if unresolved:
        return RequiresHumanDecision(
            DecisionReason.UNRESOLVED_CARRY_FORWARD,
            tuple(i.template_item_id for i in unresolved),
        )

    return RequiresHumanDecision(
        DecisionReason.DEFECTS_PRESENT,
        tuple(i.template_item_id for i in defects),
    )


def apply_escalation(inspection: Inspection) -> Inspection:
    """Escalader vers Unsafe si necessaire / Escalate to Unsafe when derived.

    Leaves the status alone when it was set by a human, and for every
    derived outcome other than Unsafe.
    """
    if inspection.crane_status_overridden:
        return inspection
    decision = derive_status(inspection.items)
    if isinstance(decision, Derived) and decision.status == OperationalStatus.UNSAFE:
        if inspection.crane_status != OperationalStatus.UNSAFE:
            return inspection.model_copy(update={"crane_status": OperationalStatus.UNSAFE})
    return inspection
