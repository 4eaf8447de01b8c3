import bleach
from rest_framework import serializers

from records.models import Patient

GENDERS = [value for value, _ in Patient.GENDER_CHOICES]
BLOOD_TYPES = ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class PatientSearchQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, default='')


class PatientCreateSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150)
    national_id = serializers.CharField(max_length=50)
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    date_of_birth = serializers.DateField()
    gender = serializers.ChoiceField(choices=GENDERS)
    blood_type = serializers.ChoiceField(choices=BLOOD_TYPES)
    phone = serializers.CharField(max_length=20)
    address = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_full_name(self, v):
        v = _clean(v)
        if len(v) < 2:
            raise serializers.ValidationError('Full name must be at least 2 characters')
        return v

    def validate_national_id(self, v):
        v = (v or '').strip()
        if not v.isalnum():
            raise serializers.ValidationError('National ID must be letters and digits only')
        return v

    def validate_address(self, v):
        return _clean(v)


class PatientUpdateSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)
    full_name = serializers.CharField(required=False, max_length=150)
    date_of_birth = serializers.DateField(required=False)
    gender = serializers.ChoiceField(choices=GENDERS, required=False)
    blood_type = serializers.ChoiceField(choices=BLOOD_TYPES, required=False)
    phone = serializers.CharField(required=False, max_length=20)
    address = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(required=False, allow_blank=True, write_only=True, trim_whitespace=False)

    def validate_full_name(self, v):
        return _clean(v)

    def validate_address(self, v):
        return _clean(v)


class PatientIdSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)


class PatientRecordsQuerySerializer(serializers.Serializer):
    user_id = serializers.IntegerField(required=False, min_value=1)
    patient_id = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        if not attrs.get('user_id') and not attrs.get('patient_id'):
            raise serializers.ValidationError('user_id or patient_id is required')
        return attrs
