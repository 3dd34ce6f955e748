"""
DRF serializers for API request/response validation.
Separates API contract from DB models.

Write serializers are also what the gateway parses every create/update
payload through, so nothing reaches the database unvalidated.
"""
from rest_framework import serializers
from crm.models import (
    Zone, Area, Village, UserProfile, FieldStaff, Dealer, DealerSale, DealerTouchpoint, Product, Farmer,
    FarmerEngagement, EngagementStageHistory, FarmerActivity,
)


# ─── Geography Serializers ───────────────────────────────────────────────────

class ZoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = Zone
        fields = [
            'id', 'code', 'name', 'country', 'manager', 'is_active',
            'created_at', 'updated_at',
        ]


class ZoneSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Zone
        fields = ['id', 'name', 'code']


class AreaSerializer(serializers.ModelSerializer):
    zone_detail = ZoneSummarySerializer(source='zone', read_only=True)

    class Meta:
        model = Area
        fields = [
            'id', 'code', 'name', 'zone', 'zone_detail', 'is_active',
            'created_at', 'updated_at',
        ]


class AreaSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Area
        fields = ['id', 'name', 'code', 'zone_id']


class VillageSerializer(serializers.ModelSerializer):
    area_detail = AreaSummarySerializer(source='area', read_only=True)

    class Meta:
        model = Village
        fields = [
            'id', 'area', 'area_detail', 'name', 'code', 'village_type',
            'population', 'postal_code', 'latitude', 'longitude',
            'is_active', 'notes', 'created_at', 'updated_at',
        ]


class VillageSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Village
        fields = ['id', 'name', 'code', 'area_id']


# ─── Staff Serializers ───────────────────────────────────────────────────────

class UserProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserProfile
        fields = ['id', 'full_name', 'email', 'phone', 'role', 'is_active', 'created_at', 'updated_at']


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = UserProfile
        fields = ['id', 'full_name', 'email']


class FieldStaffSerializer(serializers.ModelSerializer):
    zone_detail = ZoneSummarySerializer(source='zone', read_only=True)
    area_detail = AreaSummarySerializer(source='area', read_only=True)
    telemarketing_officer_detail = UserSummarySerializer(source='telemarketing_officer', read_only=True)

    class Meta:
        model = FieldStaff
        fields = [
            'id', 'staff_code', 'full_name', 'email', 'phone',
            'zone', 'zone_detail', 'area', 'area_detail',
            'telemarketing_officer', 'telemarketing_officer_detail',
            'designation', 'joining_date', 'address', 'city', 'notes',
            'is_active', 'created_at', 'updated_at',
        ]


class FieldStaffSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = FieldStaff
        fields = ['id', 'staff_code', 'full_name']


# ─── Dealer / Product Serializers ────────────────────────────────────────────

class DealerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Dealer
        fields = '__all__'


class DealerSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Dealer
        fields = ['id', 'dealer_code', 'business_name']


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = '__all__'


class ProductSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'product_code', 'product_name', 'category']


class DealerSaleSerializer(serializers.ModelSerializer):
    dealer_detail = DealerSummarySerializer(source='dealer', read_only=True)
    product_detail = ProductSummarySerializer(source='product', read_only=True)

    class Meta:
        model = DealerSale
        fields = '__all__'


class DealerTouchpointSerializer(serializers.ModelSerializer):
    """next_scheduled_date and last_executed_date are kept by the schedule, not the client."""
    dealer_detail = DealerSummarySerializer(source='dealer', read_only=True)
    assigned_to_detail = UserSummarySerializer(source='assigned_to', read_only=True)

    class Meta:
        model = DealerTouchpoint
        fields = '__all__'
        read_only_fields = ['next_scheduled_date', 'last_executed_date']


# ─── Farmer Serializers ──────────────────────────────────────────────────────

class FarmerWriteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Farmer
        fields = [
            'farmer_code', 'full_name', 'phone', 'alternate_phone', 'email',
            'zone', 'area', 'village', 'city', 'district', 'address',
            'land_size_acres', 'primary_crops',
            'lead_stage', 'lead_score', 'lead_quality', 'is_customer', 'data_source',
            'registration_date',
            'assigned_tmo', 'assigned_field_staff', 'assigned_dealer',
        ]


class FarmerSerializer(serializers.ModelSerializer):
    zone_detail = ZoneSummarySerializer(source='zone', read_only=True)
    area_detail = AreaSummarySerializer(source='area', read_only=True)
    village_detail = VillageSummarySerializer(source='village', read_only=True)
    assigned_tmo_detail = UserSummarySerializer(source='assigned_tmo', read_only=True)
    assigned_field_staff_detail = FieldStaffSummarySerializer(source='assigned_field_staff', read_only=True)
    assigned_dealer_detail = DealerSummarySerializer(source='assigned_dealer', read_only=True)
    last_activity_date = serializers.SerializerMethodField()

    class Meta:
        model = Farmer
        fields = '__all__'

    def get_last_activity_date(self, obj):
        value = getattr(obj, 'last_activity_date', None)
        return value.isoformat() if value else None


class FarmerSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Farmer
        fields = ['id', 'farmer_code', 'full_name', 'phone']


# ─── Engagement Serializers ──────────────────────────────────────────────────

class EngagementCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = FarmerEngagement
        fields = [
            'farmer', 'product', 'season', 'data_source', 'source_reference',
            'lead_stage', 'lead_score', 'lead_quality',
            'next_follow_up_date', 'follow_up_required', 'follow_up_notes',
            'assigned_tmo', 'assigned_field_staff', 'notes', 'tags', 'created_by',
        ]
        extra_kwargs = {'product': {'required': False, 'allow_null': True}}
        # Duplicates (farmer, product, season) are rejected by the table constraint
        validators = []


class EngagementUpdateSerializer(serializers.ModelSerializer):
    """
    General edits. Stage, conversion and closure fields are absent on purpose;
    those only change through the lifecycle endpoints.
    """
    class Meta:
        model = FarmerEngagement
        fields = [
            'product', 'season', 'data_source', 'source_reference',
            'lead_score', 'lead_quality',
            'next_follow_up_date', 'follow_up_required', 'follow_up_notes',
            'assigned_tmo', 'assigned_field_staff', 'notes', 'tags',
        ]
        extra_kwargs = {field: {'required': False} for field in fields}


class EngagementSerializer(serializers.ModelSerializer):
    farmer_detail = FarmerSummarySerializer(source='farmer', read_only=True)
    product_detail = ProductSummarySerializer(source='product', read_only=True)
    assigned_tmo_detail = UserSummarySerializer(source='assigned_tmo', read_only=True)
    assigned_field_staff_detail = FieldStaffSummarySerializer(source='assigned_field_staff', read_only=True)
    lead_stage_label = serializers.CharField(source='get_lead_stage_display', read_only=True)

    class Meta:
        model = FarmerEngagement
        fields = '__all__'


class StageChangeSerializer(serializers.Serializer):
    """Payload for moving an engagement to a new lead stage."""
    lead_stage = serializers.CharField()
    changed_by = serializers.UUIDField(required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class ConvertSerializer(serializers.Serializer):
    total_purchases = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    changed_by = serializers.UUIDField(required=False, allow_null=True)


class CloseSerializer(serializers.Serializer):
    reason = serializers.CharField()
    changed_by = serializers.UUIDField(required=False, allow_null=True)


class ReopenSerializer(serializers.Serializer):
    changed_by = serializers.UUIDField(required=False, allow_null=True)


class FollowUpSerializer(serializers.Serializer):
    next_follow_up_date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class StageHistorySerializer(serializers.ModelSerializer):
    changed_by_detail = UserSummarySerializer(source='changed_by', read_only=True)
    display_text = serializers.SerializerMethodField()

    class Meta:
        model = EngagementStageHistory
        fields = [
            'id', 'engagement_id', 'field_changed', 'old_value', 'new_value',
            'changed_by', 'changed_by_detail', 'change_reason', 'triggered_by',
            'metadata', 'display_text', 'created_at',
        ]

    def get_display_text(self, obj):
        from crm.services.lifecycle import describe_history_entry
        return describe_history_entry(obj)


class FarmerHistorySerializer(StageHistorySerializer):
    """Timeline row across all of a farmer's engagements, tagged with the product."""
    product_detail = serializers.SerializerMethodField()

    class Meta(StageHistorySerializer.Meta):
        fields = StageHistorySerializer.Meta.fields + ['product_detail']

    def get_product_detail(self, obj):
        product = obj.engagement.product
        return ProductSummarySerializer(product).data if product else None


# ─── Activity Serializers ────────────────────────────────────────────────────

class ActivityWriteSerializer(serializers.ModelSerializer):
    class Meta:
        model = FarmerActivity
        fields = [
            'farmer', 'engagement', 'activity_type', 'activity_title',
            'activity_description', 'activity_outcome', 'performed_by',
            'next_action', 'next_action_date', 'tags',
        ]


class ActivitySerializer(serializers.ModelSerializer):
    farmer_detail = FarmerSummarySerializer(source='farmer', read_only=True)
    performed_by_detail = UserSummarySerializer(source='performed_by', read_only=True)

    class Meta:
        model = FarmerActivity
        fields = '__all__'


