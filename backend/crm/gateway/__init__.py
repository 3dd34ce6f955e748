from crm.gateway.base import Backend, GatewayError, GatewayResult, GatewayFailure, TableGateway
from crm.gateway.geography import ZoneGateway, AreaGateway, VillageGateway
from crm.gateway.staff import UserProfileGateway, FieldStaffGateway
from crm.gateway.dealers import DealerGateway, ProductGateway
from crm.gateway.sales import DealerSaleGateway
from crm.gateway.touchpoints import DealerTouchpointGateway
from crm.gateway.farmers import FarmerGateway
from crm.gateway.engagements import EngagementGateway
from crm.gateway.activities import ActivityGateway

__all__ = [
    "Backend", "GatewayError", "GatewayResult", "GatewayFailure", "TableGateway",
    "ZoneGateway", "AreaGateway", "VillageGateway",
    "UserProfileGateway", "FieldStaffGateway",
    "DealerGateway", "ProductGateway", "DealerSaleGateway", "DealerTouchpointGateway",
    "FarmerGateway", "EngagementGateway", "ActivityGateway",
]
