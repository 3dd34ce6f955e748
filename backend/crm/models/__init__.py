from crm.models.geography import Zone, Area, Village
from crm.models.staff import UserProfile, FieldStaff
from crm.models.dealer import Dealer, DealerSale, DealerTouchpoint
from crm.models.product import Product
from crm.models.farmer import Farmer
from crm.models.engagement import (
    FarmerEngagement, EngagementStageHistory,
    LeadStage, DataSource, LeadQuality,
)
from crm.models.activity import FarmerActivity

__all__ = [
    "Zone", "Area", "Village",
    "UserProfile", "FieldStaff", "Dealer", "DealerSale", "DealerTouchpoint", "Product", "Farmer",
    "FarmerEngagement", "EngagementStageHistory", "FarmerActivity",
    "LeadStage", "DataSource", "LeadQuality",
]
