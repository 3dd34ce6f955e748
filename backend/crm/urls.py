"""
CRM URL configuration.

One Backend handle is built here at import time and handed to every view
through as_view(backend=...).
"""
from django.urls import path

from crm.api import activities, dealers, engagements, farmers, geography, staff
from crm.gateway import Backend

backend = Backend.from_settings()


def view(cls):
    return cls.as_view(backend=backend)


urlpatterns = [
    # Geography
    path('zones/', view(geography.ZoneListCreateView)),
    path('zones/<uuid:pk>', view(geography.ZoneDetailView)),
    path('areas/', view(geography.AreaListCreateView)),
    path('areas/form-options', view(geography.AreaFormOptionsView)),
    path('areas/<uuid:pk>', view(geography.AreaDetailView)),
    path('villages/', view(geography.VillageListCreateView)),
    path('villages/by-area/<uuid:area_id>', view(geography.VillagesByAreaView)),
    path('villages/<uuid:pk>', view(geography.VillageDetailView)),

    # Staff
    path('users/', view(staff.UserListCreateView)),
    path('users/tmos', view(staff.TmoListView)),
    path('users/<uuid:pk>', view(staff.UserDetailView)),
    path('field-staff/', view(staff.FieldStaffListCreateView)),
    path('field-staff/<uuid:pk>', view(staff.FieldStaffDetailView)),

    # Dealers / products
    path('dealers/', view(dealers.DealerListCreateView)),
    path('dealers/search', view(dealers.DealerSearchView)),
    path('dealers/<uuid:pk>', view(dealers.DealerDetailView)),
    path('dealers/<uuid:dealer_id>/touchpoints', view(dealers.DealerTouchpointsView)),
    path('products/', view(dealers.ProductListCreateView)),
    path('products/<uuid:pk>', view(dealers.ProductDetailView)),

    # Dealer sales ledger
    path('sales/', view(dealers.DealerSaleListCreateView)),
    path('sales/bulk', view(dealers.DealerSaleBulkCreateView)),
    path('sales/search', view(dealers.DealerSaleSearchView)),
    path('sales/stats', view(dealers.DealerSaleStatsView)),
    path('sales/top-products', view(dealers.TopProductsView)),
    path('sales/trend', view(dealers.SalesTrendView)),
    path('sales/payments', view(dealers.PaymentSummaryView)),
    path('sales/<uuid:pk>', view(dealers.DealerSaleDetailView)),

    # Dealer touchpoints
    path('touchpoints/', view(dealers.TouchpointListCreateView)),
    path('touchpoints/due', view(dealers.TouchpointsDueView)),
    path('touchpoints/<uuid:pk>', view(dealers.TouchpointDetailView)),
    path('touchpoints/<uuid:pk>/complete', view(dealers.CompleteTouchpointView)),

    # Farmers
    path('farmers/', view(farmers.FarmerListCreateView)),
    path('farmers/search', view(farmers.FarmerSearchView)),
    path('farmers/next-code', view(farmers.NextFarmerCodeView)),
    path('farmers/export', view(farmers.FarmerExportView)),
    path('farmers/<uuid:pk>', view(farmers.FarmerDetailView)),
    path('farmers/<uuid:farmer_id>/engagements', view(engagements.FarmerEngagementsView)),
    path('farmers/<uuid:farmer_id>/history', view(engagements.FarmerHistoryView)),
    path('farmers/<uuid:farmer_id>/activities', view(activities.FarmerActivitiesView)),
    path('farmers/<uuid:farmer_id>/activities/stats', view(activities.FarmerActivityStatsView)),

    # Engagements
    path('engagements/', view(engagements.EngagementListCreateView)),
    path('engagements/bulk', view(engagements.EngagementBulkCreateView)),
    path('engagements/exists', view(engagements.EngagementExistsView)),
    path('engagements/stats', view(engagements.EngagementStatsView)),
    path('engagements/seasons', view(engagements.EngagementSeasonsView)),
    path('engagements/stages', view(engagements.EngagementStagesView)),
    path('engagements/follow-ups', view(engagements.FollowUpsDueView)),
    path('engagements/follow-ups/stats', view(engagements.FollowUpStatsView)),
    path('engagements/<uuid:pk>', view(engagements.EngagementDetailView)),
    path('engagements/<uuid:pk>/stage', view(engagements.StageChangeView)),
    path('engagements/<uuid:pk>/convert', view(engagements.ConvertView)),
    path('engagements/<uuid:pk>/close', view(engagements.CloseView)),
    path('engagements/<uuid:pk>/reopen', view(engagements.ReopenView)),
    path('engagements/<uuid:pk>/follow-up', view(engagements.SetFollowUpView)),
    path('engagements/<uuid:pk>/follow-up/complete', view(engagements.CompleteFollowUpView)),
    path('engagements/<uuid:pk>/history', view(engagements.StageHistoryView)),

    # Activities
    path('activities/', view(activities.ActivityListCreateView)),
    path('activities/recent', view(activities.RecentActivitiesView)),
    path('activities/<uuid:pk>', view(activities.ActivityDetailView)),
]
