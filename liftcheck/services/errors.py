"""
Erreurs du moteur d'inspection / Inspection engine errors.

Les erreurs de validation sont renvoyees comme valeurs ``Rejected``, jamais levees.
Validation failures are returned as ``Rejected`` values so the caller can
re-prompt the technician and retry. Record-store failures are real exceptions
and propagate unchanged.
"""

import enum
from dataclasses import dataclass, field
from typing import Any


class ErrorKind(str, enum.Enum):
    MISSING_REQUIRED_PHOTO = "MissingRequiredPhoto"
    PHOTO_LIMIT_EXCEEDED = "PhotoLimitExceeded"
    PHOTO_TOO_LARGE = "PhotoTooLarge"
    UNSUPPORTED_PHOTO_TYPE = "UnsupportedPhotoType"
    INCOMPLETE_INSPECTION = "IncompleteInspection"
    NOT_FOUND = "NotFound"
    DUPLICATE_ACTIVE_INSPECTION = "DuplicateActiveInspection"
    INVALID_TRANSITION = "InvalidTransition"
    INVALID_ANSWER = "InvalidAnswer"
    OPERATIONAL_STATUS_REQUIRED = "OperationalStatusRequired"


@dataclass(frozen=True)
class Rejected:
    """Echec recuperable / Recoverable, tagged failure value."""
    kind: ErrorKind
    message: str
    detail: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "detail": self.detail}


class RecordStoreError(Exception):
    """Echec de persistance / Persistence failure raised by a record store."""
