from django.db.models import Q

from crm.gateway.base import TableGateway, guarded
from crm.models import Dealer, Product
from crm.serializers import DealerSerializer, ProductSerializer


class DealerGateway(TableGateway):
    model = Dealer
    write_serializer = DealerSerializer
    filter_fields = ("zone_id", "area_id", "village_id", "field_staff_id", "relationship_status", "is_active")
    ordering = ("-created_at",)
    select_related = ("zone", "area", "village", "field_staff")

    @guarded
    def search(self, term: str):
        return list(self.query().filter(
            Q(business_name__icontains=term) |
            Q(owner_name__icontains=term) |
            Q(phone__icontains=term)
        ))


class ProductGateway(TableGateway):
    model = Product
    write_serializer = ProductSerializer
    filter_fields = ("category", "is_active")
    ordering = ("product_name",)
