"""
Service d'export CSV/Excel / CSV/Excel export service.
Génère des fichiers CSV et XLSX à partir de listes de dictionnaires.
"""

import csv
import io

from openpyxl import Workbook
from openpyxl.styles import Font

from liftcheck.services.quote_projector import QuoteCandidate

QUOTE_FIELDS = [
    "inspection_id",
    "site_id",
    "asset_id",
    "section_id",
    "template_item_id",
    "defect_type",
    "severity",
    "rectification_timeframe",
    "recommended_action",
    "notes",
    "photo_count",
]


class ExportService:
    """Export de données vers CSV/XLSX / Data export to CSV/XLSX."""

    @staticmethod
    def quote_rows(candidates: list[QuoteCandidate]) -> list[dict]:
        """Aplatir les candidats devis / Flatten quote candidates into rows."""
        return [
            {
                "inspection_id": c.inspection_id,
                "site_id": c.site_id or "",
                "asset_id": c.asset_id,
                "section_id": c.section_id,
                "template_item_id": c.template_item_id,
                "defect_type": c.defect.defect_type.value,
                "severity": c.defect.severity.value,
                "rectification_timeframe": c.defect.rectification_timeframe.value,
                "recommended_action": c.defect.recommended_action,
                "notes": c.defect.notes,
                "photo_count": len(c.defect.photos),
            }
            for c in candidates
        ]

    @staticmethod
    def to_csv(rows: list[dict], fields: list[str]) -> bytes:
        """Générer un CSV UTF-8 BOM avec séparateur ';' / Generate UTF-8 BOM CSV with ';' separator."""
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=fields, delimiter=";", extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({f: row.get(f, "") for f in fields})
        return ("\ufeff" + output.getvalue()).encode("utf-8")

    @staticmethod
    def to_xlsx(rows: list[dict], fields: list[str], sheet_name: str = "Data") -> bytes:
        """Générer un fichier Excel / Generate an Excel file."""
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name

        # En-têtes / Headers
        for col_idx, field in enumerate(fields, 1):
            cell = ws.cell(row=1, column=col_idx, value=field)
            cell.font = Font(bold=True)

        # Données / Data rows
        for row_idx, row in enumerate(rows, 2):
            for col_idx, field in enumerate(fields, 1):
                ws.cell(row=row_idx, column=col_idx, value=row.get(field))

        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()
