from crm.gateway.base import TableGateway, guarded
from crm.models import UserProfile, FieldStaff
from crm.serializers import UserProfileSerializer, FieldStaffSerializer


class UserProfileGateway(TableGateway):
    model = UserProfile
    write_serializer = UserProfileSerializer
    filter_fields = ("role", "is_active")
    ordering = ("full_name",)

    @guarded
    def get_tmos(self):
        """Active telemarketing officers, for assignment dropdowns."""
        return list(self.query().filter(role=UserProfile.Role.TMO, is_active=True))


class FieldStaffGateway(TableGateway):
    model = FieldStaff
    write_serializer = FieldStaffSerializer
    filter_fields = ("zone_id", "area_id", "telemarketing_officer_id", "is_active")
    ordering = ("full_name",)
    select_related = ("zone", "area", "telemarketing_officer")
