"""
Farmer list exports: CSV, "Excel" (CSV under a .csv name until a real
workbook writer is wired in), and a printable HTML page the browser turns
into a PDF through its print dialog.
"""
import csv
import io
import logging
from dataclasses import dataclass

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

logger = logging.getLogger(__name__)

FORMAT_CSV = "csv"
FORMAT_EXCEL = "excel"
FORMAT_PDF = "pdf"
FORMATS = (FORMAT_CSV, FORMAT_EXCEL, FORMAT_PDF)

NO_DATA_MESSAGE = "No data to export"
NO_SELECTION_MESSAGE = "No farmers selected. Please select farmers to export."
EXCEL_NOTICE = "Excel export coming soon! Using CSV format for now."

EXPORT_COLUMNS = [
    "Farmer Code", "Full Name", "Phone", "Email", "Zone", "Area", "Village",
    "Lead Score", "Lead Quality", "Customer Status", "Land Size (acres)",
    "Primary Crops", "Assigned TMO", "Field Staff", "Dealer",
    "Active Products", "Last Activity", "Registered",
]


class NoDataToExport(Exception):
    pass


@dataclass
class ExportFile:
    filename: str
    content_type: str
    content: str
    notice: str | None = None


def _name(obj, attr, fallback):
    value = getattr(obj, attr, None) if obj is not None else None
    return value or fallback


def _date(value):
    if not value:
        return None
    if hasattr(value, "date"):
        value = timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    return value.isoformat()


def prepare_export_rows(farmers) -> list[dict]:
    """One ordered dict per farmer, keyed by EXPORT_COLUMNS."""
    rows = []
    for farmer in farmers:
        active_products = getattr(farmer, "active_engagements", None)
        if active_products is None:
            active_products = farmer.engagements.filter(is_active=True).count()

        rows.append({
            "Farmer Code": farmer.farmer_code or "N/A",
            "Full Name": farmer.full_name,
            "Phone": farmer.phone,
            "Email": farmer.email or "N/A",
            "Zone": _name(farmer.zone, "name", "N/A"),
            "Area": _name(farmer.area, "name", "N/A"),
            "Village": _name(farmer.village, "name", "N/A"),
            "Lead Score": farmer.lead_score,
            "Lead Quality": (farmer.lead_quality or "").upper(),
            "Customer Status": "Customer" if farmer.is_customer else "Lead",
            "Land Size (acres)": farmer.land_size_acres or 0,
            "Primary Crops": ", ".join(farmer.primary_crops or []) or "N/A",
            "Assigned TMO": _name(farmer.assigned_tmo, "full_name", "Unassigned"),
            "Field Staff": _name(farmer.assigned_field_staff, "full_name", "Unassigned"),
            "Dealer": _name(farmer.assigned_dealer, "business_name", "Unassigned"),
            "Active Products": active_products,
            "Last Activity": _date(getattr(farmer, "last_activity_date", None)) or "Never",
            "Registered": _date(farmer.created_at),
        })
    return rows


def render_csv(rows: list[dict]) -> str:
    """
    Header plus one line per row. Fields holding a comma, quote or newline
    are wrapped in double quotes with inner quotes doubled.
    """
    if not rows:
        raise NoDataToExport(NO_DATA_MESSAGE)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    headers = list(rows[0].keys())
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if row[h] is None else row[h] for h in headers])
    return buffer.getvalue()


def render_html(rows: list[dict], exported_at=None) -> str:
    if not rows:
        raise NoDataToExport(NO_DATA_MESSAGE)
    headers = list(rows[0].keys())
    return render_to_string("crm/farmers_export.html", {
        "title": "Farmers Export",
        "exported_at": exported_at or timezone.now(),
        "total": len(rows),
        "headers": headers,
        "rows": [[row[h] for h in headers] for row in rows],
    })


def export_farmers(farmers, fmt: str = FORMAT_CSV, basename: str | None = None) -> ExportFile:
    """Build the export file for a list of farmers. Raises NoDataToExport when empty."""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown export format: {fmt}")

    rows = prepare_export_rows(farmers)
    if not rows:
        raise NoDataToExport(NO_DATA_MESSAGE)

    basename = basename or f"{getattr(settings, 'EXPORT_FILENAME_PREFIX', 'farmers')}-export"
    logger.info("Exporting %d farmers as %s", len(rows), fmt)

    if fmt == FORMAT_PDF:
        return ExportFile(f"{basename}.html", "text/html; charset=utf-8", render_html(rows))

    content = render_csv(rows)
    if fmt == FORMAT_EXCEL:
        return ExportFile(f"{basename}.csv", "text/csv; charset=utf-8", content, notice=EXCEL_NOTICE)
    return ExportFile(f"{basename}.csv", "text/csv; charset=utf-8", content)


def export_selected(farmers, selected_ids, fmt: str = FORMAT_CSV, now=None) -> ExportFile:
    selected = {str(pk) for pk in selected_ids}
    chosen = [farmer for farmer in farmers if str(farmer.id) in selected]
    if not chosen:
        raise NoDataToExport(NO_SELECTION_MESSAGE)

    now = now or timezone.now()
    prefix = getattr(settings, "EXPORT_FILENAME_PREFIX", "farmers")
    basename = f"{prefix}-selected-{len(chosen)}-{int(now.timestamp() * 1000)}"
    return export_farmers(chosen, fmt, basename=basename)
