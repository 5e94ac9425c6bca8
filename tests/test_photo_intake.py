"""Tests du controle des photos / Photo intake tests."""

from conftest import make_photo, make_upload

from liftcheck.services.errors import ErrorKind
from liftcheck.services.photo_intake import PhotoLimits, check_photo, intake_photos, remove_photo

LIMITS = PhotoLimits(max_photos=5, max_size_bytes=10 * 1024 * 1024, allowed_types=frozenset({"image/jpeg", "image/png"}))


def test_check_photo_ok():
    assert check_photo(make_upload(), LIMITS) is None


def test_check_photo_unsupported_type():
    rejected = check_photo(make_upload("doc.pdf", "application/pdf"), LIMITS)
    assert rejected.kind == ErrorKind.UNSUPPORTED_PHOTO_TYPE


def test_check_photo_too_large():
    rejected = check_photo(make_upload(size=10 * 1024 * 1024 + 1), LIMITS)
    assert rejected.kind == ErrorKind.PHOTO_TOO_LARGE


def test_check_photo_exact_limit_accepted():
    assert check_photo(make_upload(size=10 * 1024 * 1024), LIMITS) is None


def test_mime_type_case_insensitive():
    assert check_photo(make_upload(mime="IMAGE/JPEG"), LIMITS) is None


def test_cap_applies_to_existing_plus_batch():
    # 4 existantes + 6 nouvelles -> 1 acceptee / 4 existing + 6 new -> 1 accepted
    existing = tuple(make_photo(f"e{i}") for i in range(4))
    uploads = [make_upload(f"n{i}.jpg") for i in range(6)]

    result = intake_photos(existing, uploads, LIMITS, now="2026-03-02T08:00:00+00:00")

    assert len(result.photos) == 5
    assert len(result.accepted) == 1
    assert result.accepted_refs[0].filename == "n0.jpg"
    assert [r.kind for r in result.rejected] == [ErrorKind.PHOTO_LIMIT_EXCEEDED] * 5


def test_invalid_files_skipped_valid_ones_kept():
    uploads = [
        make_upload("ok1.jpg"),
        make_upload("bad.gif", "image/gif"),
        make_upload("huge.png", "image/png", size=20 * 1024 * 1024),
        make_upload("ok2.png", "image/png"),
    ]
    result = intake_photos((), uploads, LIMITS)

    assert [p.filename for p in result.photos] == ["ok1.jpg", "ok2.png"]
    assert {r.kind for r in result.rejected} == {ErrorKind.UNSUPPORTED_PHOTO_TYPE, ErrorKind.PHOTO_TOO_LARGE}


def test_intake_keeps_existing_and_order():
    existing = (make_photo("e1"),)
    result = intake_photos(existing, [make_upload("a.jpg"), make_upload("b.jpg")], LIMITS)
    assert [p.id for p in result.photos][0] == "e1"
    assert [p.filename for p in result.photos[1:]] == ["a.jpg", "b.jpg"]


def test_intake_with_full_list_accepts_nothing():
    existing = tuple(make_photo(f"e{i}") for i in range(5))
    result = intake_photos(existing, [make_upload()], LIMITS)
    assert result.photos == existing
    assert result.accepted == ()
    assert result.rejected[0].kind == ErrorKind.PHOTO_LIMIT_EXCEEDED


def test_photo_refs_get_unique_ids():
    result = intake_photos((), [make_upload("a.jpg"), make_upload("a.jpg")], LIMITS)
    ids = [p.id for p in result.photos]
    assert len(set(ids)) == 2


def test_remove_photo():
    photos = (make_photo("a"), make_photo("b"))
    assert remove_photo(photos, "a") == (make_photo("b"),)


def test_remove_unknown_photo():
    rejected = remove_photo((make_photo("a"),), "zzz")
    assert rejected.kind == ErrorKind.NOT_FOUND
