"""
Farmer API: list/create/detail, search, next farmer code and exports.

Export formats: csv, excel (served as CSV with a notice header for now),
pdf (a printable HTML page).
"""
from django.http import HttpResponse
from rest_framework import status
from rest_framework.response import Response

from crm.api.base import CrmView, DetailView, ListCreateView
from crm.gateway import FarmerGateway
from crm.serializers import FarmerSerializer
from crm.services.exports import FORMAT_CSV, FORMAT_PDF, FORMATS, NoDataToExport, export_farmers, export_selected

FARMER_FILTERS = {
    "zone": "zone_id", "area": "area_id", "village": "village_id",
    "lead_stage": "lead_stage", "lead_quality": "lead_quality",
    "is_customer": "is_customer", "data_source": "data_source",
    "tmo": "assigned_tmo_id", "field_staff": "assigned_field_staff_id",
    "dealer": "assigned_dealer_id",
}


class FarmerListCreateView(ListCreateView):
    gateway_class = FarmerGateway
    serializer_class = FarmerSerializer
    query_filters = FARMER_FILTERS


class FarmerDetailView(DetailView):
    gateway_class = FarmerGateway
    serializer_class = FarmerSerializer
    label_field = "full_name"


class FarmerSearchView(CrmView):
    """Search by name, phone or village name."""

    gateway_class = FarmerGateway
    serializer_class = FarmerSerializer

    def get(self, request):
        term = request.query_params.get("q", "").strip()
        if not term:
            return Response([])
        return self.respond(self.gateway.search(term), many=True)


class NextFarmerCodeView(CrmView):
    gateway_class = FarmerGateway

    def get(self, request):
        return Response({"farmer_code": self.gateway.generate_farmer_code()})


class FarmerExportView(CrmView):
    """
    GET /api/farmers/export?format=csv|excel|pdf&ids=<uuid>,<uuid>

    Without ids every farmer matching the list filters is exported.
    """

    gateway_class = FarmerGateway

    def get(self, request):
        fmt = request.query_params.get("format", FORMAT_CSV)
        if fmt not in FORMATS:
            return Response(
                {"detail": f"Unknown export format: {fmt}", "code": "validation_error",
                 "details": {"allowed": list(FORMATS)}},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = self.gateway.get_all(**self.filters_from(request, FARMER_FILTERS))
        if not result.ok:
            return self.respond(result)

        ids = [pk for pk in request.query_params.get("ids", "").split(",") if pk.strip()]
        try:
            if ids:
                export = export_selected(result.data, ids, fmt)
            else:
                export = export_farmers(result.data, fmt)
        except NoDataToExport as exc:
            return Response(
                {"detail": str(exc), "code": "no_data", "details": None},
                status=status.HTTP_404_NOT_FOUND,
            )

        response = HttpResponse(export.content, content_type=export.content_type)
        disposition = "inline" if fmt == FORMAT_PDF else "attachment"
        response["Content-Disposition"] = f'{disposition}; filename="{export.filename}"'
        if export.notice:
            response["X-Export-Notice"] = export.notice
        return response
