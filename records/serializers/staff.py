from rest_framework import serializers

STAFF_ROLES = ['doctor', 'nurse', 'admin']


class StaffListQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=['doctor', 'nurse'], default='doctor')
    search = serializers.CharField(required=False, allow_blank=True, default='')


class StaffCreateSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    role = serializers.ChoiceField(choices=STAFF_ROLES)
    full_name = serializers.CharField(max_length=150)
    # specialty id for doctors, department id for nurses
    extra_id = serializers.IntegerField(required=False, allow_null=True)
    phone_number = serializers.CharField(required=False, allow_blank=True, max_length=20, default='')


class StaffUpdateSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    username = serializers.CharField(required=False, max_length=150)
    password = serializers.CharField(required=False, allow_blank=True, write_only=True, trim_whitespace=False)
    full_name = serializers.CharField(required=False, max_length=150)
    extra_id = serializers.IntegerField(required=False, allow_null=True)
    phone_number = serializers.CharField(required=False, allow_blank=True, max_length=20)
    is_active = serializers.BooleanField(required=False)


class UserIdSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
