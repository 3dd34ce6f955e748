"""
Farmer exports: row preparation, CSV quoting, Excel fallback and the printable page.
"""
from datetime import datetime, timezone as dt_timezone

import pytest

from crm.gateway import FarmerGateway
from crm.models import Farmer
from crm.services.exports import (
    EXCEL_NOTICE, EXPORT_COLUMNS, NO_SELECTION_MESSAGE, NoDataToExport,
    export_farmers, export_selected, prepare_export_rows, render_csv,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def listed(backend, farmer, engagement):
    return FarmerGateway(backend).get_all().data


class TestRows:

    def test_columns_and_values(self, listed):
        row = prepare_export_rows(listed)[0]
        assert list(row) == EXPORT_COLUMNS
        assert row["Farmer Code"] == "F-001"
        assert row["Zone"] == "North Zone"
        assert row["Village"] == "Shujabad"
        assert row["Lead Quality"] == "HOT"
        assert row["Customer Status"] == "Lead"
        assert row["Primary Crops"] == "wheat, cotton"
        assert row["Assigned TMO"] == "Ayesha Khan"
        assert row["Active Products"] == 1

    def test_fallbacks(self, db):
        bare = Farmer.objects.create(farmer_code="F-009", full_name="Bare", phone="1")
        row = prepare_export_rows([bare])[0]
        assert row["Email"] == "N/A"
        assert row["Zone"] == "N/A"
        assert row["Land Size (acres)"] == 0
        assert row["Primary Crops"] == "N/A"
        assert row["Field Staff"] == "Unassigned"
        assert row["Dealer"] == "Unassigned"
        assert row["Last Activity"] == "Never"
        assert row["Active Products"] == 0


class TestCsv:

    def test_quoting(self):
        rows = [{"Name": "Doe, John", "Note": 'said "yes"', "Plain": "ok", "Lines": "a\nb"}]
        content = render_csv(rows)
        assert content == 'Name,Note,Plain,Lines\n"Doe, John","said ""yes""",ok,"a\nb"\n'

    def test_empty(self):
        with pytest.raises(NoDataToExport) as exc:
            render_csv([])
        assert str(exc.value) == "No data to export"

    def test_header_first(self, listed):
        export = export_farmers(listed, "csv")
        header = export.content.split("\n")[0]
        assert header.split(",")[:3] == ["Farmer Code", "Full Name", "Phone"]
        assert export.filename == "farmers-export.csv"
        assert export.notice is None

    def test_name_with_comma(self, backend, listed, farmer):
        FarmerGateway(backend).update(farmer.id, {"full_name": "Aslam, Muhammad"})
        export = export_farmers(FarmerGateway(backend).get_all().data, "csv")
        assert '"Aslam, Muhammad"' in export.content


class TestFormats:

    def test_empty_list(self, db):
        with pytest.raises(NoDataToExport):
            export_farmers([], "csv")

    def test_excel_falls_back_to_csv(self, listed):
        export = export_farmers(listed, "excel")
        assert export.filename.endswith(".csv")
        assert export.notice == EXCEL_NOTICE
        assert export.content == export_farmers(listed, "csv").content

    def test_pdf_is_printable_html(self, backend, farmer, listed):
        FarmerGateway(backend).update(farmer.id, {"full_name": "<b>Aslam</b>"})
        export = export_farmers(FarmerGateway(backend).get_all().data, "pdf")
        assert export.content_type.startswith("text/html")
        assert "Total Records: 1" in export.content
        assert "&lt;b&gt;Aslam&lt;/b&gt;" in export.content
        assert "window.print()" in export.content

    def test_unknown_format(self, listed):
        with pytest.raises(ValueError):
            export_farmers(listed, "docx")

    def test_prefix_setting(self, settings, listed):
        settings.EXPORT_FILENAME_PREFIX = "north-farmers"
        assert export_farmers(listed, "csv").filename == "north-farmers-export.csv"


class TestSelection:

    def test_selected_filename(self, listed, farmer):
        now = datetime(2025, 3, 10, 12, 0, tzinfo=dt_timezone.utc)
        export = export_selected(listed, [str(farmer.id)], "csv", now=now)
        assert export.filename == f"farmers-selected-1-{int(now.timestamp() * 1000)}.csv"
        assert export.content.count("\n") == 2

    def test_nothing_selected(self, listed):
        with pytest.raises(NoDataToExport) as exc:
            export_selected(listed, ["00000000-0000-0000-0000-000000000000"])
        assert str(exc.value) == NO_SELECTION_MESSAGE
