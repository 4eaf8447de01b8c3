import bleach
from rest_framework import serializers


class ReaccessSubmitSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(allow_blank=True)
    contact_phone = serializers.CharField(required=False, allow_blank=True, max_length=20)

    def validate_reason(self, v):
        v = bleach.clean((v or '').strip(), strip=True)
        if not v:
            raise serializers.ValidationError('Please explain why you missed your appointments')
        return v


class ReaccessCheckSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)


class ReaccessListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['pending', 'approved', 'rejected', 'all'], default='pending')


class ReaccessDecisionSerializer(serializers.Serializer):
    request_id = serializers.IntegerField(min_value=1)
    admin_response = serializers.CharField(required=False, allow_blank=True)
