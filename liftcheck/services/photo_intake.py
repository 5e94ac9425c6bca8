"""
Controle des photos / Photo intake rules.

Chaque fichier d'un lot est valide individuellement : les invalides sont ignores,
les valides sont ajoutes tant que le plafond par item n'est pas atteint.
Each file in a batch is checked on its own; invalid files are skipped and
valid ones still commit while the per-item cap allows.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from liftcheck.config import settings
from liftcheck.schemas.inspection import PhotoRef
from liftcheck.services.errors import ErrorKind, Rejected


@dataclass(frozen=True)
class PhotoUpload:
    """Fichier recu, deja lu / Received file, already read."""
    filename: str
    mime_type: str
    size_bytes: int
    content: bytes | None = field(default=None, repr=False)


@dataclass(frozen=True)
class PhotoLimits:
    max_photos: int = settings.MAX_PHOTOS_PER_ITEM
    max_size_bytes: int = settings.MAX_PHOTO_SIZE_BYTES
    allowed_types: frozenset[str] = frozenset(settings.ALLOWED_PHOTO_TYPES)


DEFAULT_LIMITS = PhotoLimits()


@dataclass(frozen=True)
class PhotoIntakeResult:
    photos: tuple[PhotoRef, ...]
    accepted: tuple[tuple[PhotoRef, PhotoUpload], ...] = ()
    rejected: tuple[Rejected, ...] = ()

    @property
    def accepted_refs(self) -> tuple[PhotoRef, ...]:
        return tuple(ref for ref, _ in self.accepted)


def _check(filename: str, mime_type: str, size_bytes: int, limits: PhotoLimits) -> Rejected | None:
    if (mime_type or "").lower() not in limits.allowed_types:
        return Rejected(
            ErrorKind.UNSUPPORTED_PHOTO_TYPE,
            f"Unsupported photo type '{mime_type}'",
            {"filename": filename, "allowed": sorted(limits.allowed_types)},
        )
    if size_bytes > limits.max_size_bytes:
        return Rejected(
            ErrorKind.PHOTO_TOO_LARGE,
            f"Photo '{filename}' exceeds {limits.max_size_bytes // (1024 * 1024)} MB",
            {"filename": filename, "size_bytes": size_bytes},
        )
    return None


def check_photo(upload: PhotoUpload, limits: PhotoLimits = DEFAULT_LIMITS) -> Rejected | None:
    """Verifier type et taille d'un fichier / Check a single file's type and size."""
    return _check(upload.filename, upload.mime_type, upload.size_bytes, limits)


def check_photo_ref(ref: PhotoRef, limits: PhotoLimits = DEFAULT_LIMITS) -> Rejected | None:
    """Memes regles pour une reference deja stockee / Same rules for an already stored reference."""
    return _check(ref.filename, ref.mime_type, ref.size_bytes, limits)


def intake_photos(
    existing: tuple[PhotoRef, ...],
    uploads: list[PhotoUpload],
    limits: PhotoLimits = DEFAULT_LIMITS,
    now: str | None = None,
) -> PhotoIntakeResult:
    """Ajouter un lot a une liste existante / Append a batch to an existing photo list.

    ``existing`` must be the latest known list for the target; the result's
    ``photos`` is that list plus every accepted file, in upload order.
    """
    uploaded_at = now or datetime.now(timezone.utc).isoformat(timespec="seconds")
    photos = list(existing)
    accepted: list[tuple[PhotoRef, PhotoUpload]] = []
    rejected: list[Rejected] = []

    for upload in uploads:
        problem = check_photo(upload, limits)
        if problem is not None:
            rejected.append(problem)
            continue
        if len(photos) >= limits.max_photos:
            rejected.append(Rejected(
                ErrorKind.PHOTO_LIMIT_EXCEEDED,
                f"Max {limits.max_photos} photos per item",
                {"filename": upload.filename},
            ))
            continue
        ref = PhotoRef(
            id=uuid.uuid4().hex[:12],
            filename=upload.filename,
            mime_type=upload.mime_type.lower(),
            size_bytes=upload.size_bytes,
            uploaded_at=uploaded_at,
        )
        photos.append(ref)
        accepted.append((ref, upload))

    return PhotoIntakeResult(photos=tuple(photos), accepted=tuple(accepted), rejected=tuple(rejected))


def remove_photo(existing: tuple[PhotoRef, ...], photo_id: str) -> tuple[PhotoRef, ...] | Rejected:
    remaining = tuple(p for p in existing if p.id != photo_id)
    if len(remaining) == len(existing):
        return Rejected(ErrorKind.NOT_FOUND, f"Photo '{photo_id}' not found", {"photo_id": photo_id})
    return remaining
