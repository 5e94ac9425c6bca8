"""Tests de la projection devis / Quote projection tests."""

from conftest import make_photo

from liftcheck.models.inspection import ItemOutcome, QuoteStatus
from liftcheck.schemas.inspection import Defect, Inspection, InspectionItemResult
from liftcheck.services.errors import ErrorKind
from liftcheck.services.export_service import QUOTE_FIELDS, ExportService
from liftcheck.services.quote_projector import list_quote_candidates, quote_candidates, set_quote_status


def make_inspection(inspection_id="i1", asset_id="crane-1"):
    return Inspection(
        id=inspection_id, template_id="t", template_version=1, asset_id=asset_id, site_id="site-9",
        technician_id="tech", started_at="2026-03-02T08:00:00+00:00",
        items=(
            InspectionItemResult(template_item_id="a", section_id="s1", result=ItemOutcome.PASS),
            InspectionItemResult(
                template_item_id="b", section_id="s1", result=ItemOutcome.DEFECT,
                defect=Defect(notes="worn", photos=(make_photo(),)),
            ),
            InspectionItemResult(
                template_item_id="c", section_id="s2", result=ItemOutcome.DEFECT,
                defect=Defect(notes="loose", photos=(make_photo(),)),
            ),
        ),
    )


def test_no_candidates_by_default():
    assert quote_candidates([make_inspection()]) == []


def test_quote_now_listed_with_context():
    flagged = set_quote_status(make_inspection(), "b", QuoteStatus.QUOTE_NOW)
    candidates = quote_candidates([flagged])

    assert len(candidates) == 1
    c = candidates[0]
    assert (c.inspection_id, c.asset_id, c.site_id, c.template_item_id, c.section_id) == (
        "i1", "crane-1", "site-9", "b", "s1",
    )
    assert list_quote_candidates([flagged]) == [c.defect]


def test_quote_later_not_listed():
    flagged = set_quote_status(make_inspection(), "c", "Quote Later")
    assert flagged.get_item("c").defect.quote_status == QuoteStatus.QUOTE_LATER
    assert quote_candidates([flagged]) == []


def test_invalid_quote_status_rejected():
    rejected = set_quote_status(make_inspection(), "b", "Quote Tomorrow")
    assert rejected.kind == ErrorKind.INVALID_ANSWER


def test_quote_status_on_pass_row_is_noop():
    inspection = make_inspection()
    assert set_quote_status(inspection, "a", QuoteStatus.QUOTE_NOW) == inspection


def test_candidates_across_inspections():
    one = set_quote_status(make_inspection("i1", "crane-1"), "b", QuoteStatus.QUOTE_NOW)
    two = set_quote_status(make_inspection("i2", "crane-2"), "c", QuoteStatus.QUOTE_NOW)
    assert [c.asset_id for c in quote_candidates([one, two])] == ["crane-1", "crane-2"]


def test_quote_rows_and_csv():
    flagged = set_quote_status(make_inspection(), "b", QuoteStatus.QUOTE_NOW)
    rows = ExportService.quote_rows(quote_candidates([flagged]))
    assert rows[0]["notes"] == "worn"
    assert rows[0]["photo_count"] == 1

    content = ExportService.to_csv(rows, QUOTE_FIELDS)
    assert content.startswith("\ufeff".encode("utf-8"))
    lines = content.decode("utf-8-sig").splitlines()
    assert lines[0].split(";") == QUOTE_FIELDS
    assert "worn" in lines[1]


def test_quote_xlsx():
    from io import BytesIO

    from openpyxl import load_workbook

    flagged = set_quote_status(make_inspection(), "b", QuoteStatus.QUOTE_NOW)
    content = ExportService.to_xlsx(ExportService.quote_rows(quote_candidates([flagged])), QUOTE_FIELDS, "Quotes")
    ws = load_workbook(BytesIO(content)).active
    assert ws.title == "Quotes"
    assert ws.cell(row=1, column=1).value == "inspection_id"
    assert ws.cell(row=2, column=1).value == "i1"
