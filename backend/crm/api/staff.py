"""User profiles and field staff."""
from crm.api.base import CrmView, DetailView, ListCreateView
from crm.gateway import FieldStaffGateway, UserProfileGateway
from crm.serializers import FieldStaffSerializer, UserProfileSerializer, UserSummarySerializer


class UserListCreateView(ListCreateView):
    gateway_class = UserProfileGateway
    serializer_class = UserProfileSerializer
    query_filters = {"role": "role", "is_active": "is_active"}


class UserDetailView(DetailView):
    gateway_class = UserProfileGateway
    serializer_class = UserProfileSerializer
    label_field = "full_name"


class TmoListView(CrmView):
    """Active telemarketing officers, for assignment dropdowns."""

    gateway_class = UserProfileGateway

    def get(self, request):
        return self.respond(self.gateway.get_tmos(), UserSummarySerializer, many=True)


class FieldStaffListCreateView(ListCreateView):
    gateway_class = FieldStaffGateway
    serializer_class = FieldStaffSerializer
    query_filters = {
        "zone": "zone_id", "area": "area_id",
        "tmo": "telemarketing_officer_id", "is_active": "is_active",
    }


class FieldStaffDetailView(DetailView):
    gateway_class = FieldStaffGateway
    serializer_class = FieldStaffSerializer
    label_field = "full_name"
