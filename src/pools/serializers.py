"""Serializers for pool endpoints."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rest_framework import serializers

from .models import Pool


class PoolSerializer(serializers.ModelSerializer):
    class Meta:
        model = Pool
        fields = ["id", "tenant_id", "name", "code", "time_zone", "is_active", "created_at"]
        read_only_fields = fields


class PoolCreateSerializer(serializers.Serializer):
    tenant_id = serializers.UUIDField()
    name = serializers.CharField(min_length=3, max_length=150)
    code = serializers.CharField(min_length=3, max_length=50)
    time_zone = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=80)

    @staticmethod
    def validate_time_zone(value):
        if value:
            try:
                ZoneInfo(value.strip())
            except (ZoneInfoNotFoundError, ValueError):
                raise serializers.ValidationError(f"Unknown time zone '{value}'")
        return value


class PoolListQuerySerializer(serializers.Serializer):
    tenant_id = serializers.UUIDField()
    page = serializers.IntegerField(required=False, default=1)
    page_size = serializers.IntegerField(required=False, default=25)
    search = serializers.CharField(required=False, allow_blank=True)


__all__ = ["PoolCreateSerializer", "PoolListQuerySerializer", "PoolSerializer"]
