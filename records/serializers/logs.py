from django.conf import settings
from rest_framework import serializers


class LogQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, min_value=1, max_value=500, default=50)
    offset = serializers.IntegerField(required=False, min_value=0, default=0)
    filter_type = serializers.CharField(required=False, allow_blank=True)


class LogClearSerializer(serializers.Serializer):
    days = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        attrs.setdefault('days', settings.SYSTEM_LOG_RETENTION_DAYS)
        return attrs
