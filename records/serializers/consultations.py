from rest_framework import serializers

from mobile.attachments import decode_file_paths, encode_file_paths
from records.services.uploads import is_lab_path


class FilePathsField(serializers.Field):
    """Accepts a JSON array string, a bare path or a list; stores the JSON form.

    Every path must sit inside ``LAB_UPLOAD_DIR``.
    """

    def to_internal_value(self, data):
        if data is not None and not isinstance(data, (str, list)):
            raise serializers.ValidationError('Expected a path or a list of paths')
        paths = decode_file_paths(data)
        for path in paths:
            if not is_lab_path(path):
                raise serializers.ValidationError(f"Invalid file path: {path}")
        return encode_file_paths(paths)

    def to_representation(self, value):
        return value


class PrescriptionItemSerializer(serializers.Serializer):
    medication_name = serializers.CharField(max_length=150)
    dosage = serializers.CharField(required=False, allow_blank=True, max_length=100, default='')
    frequency = serializers.CharField(required=False, allow_blank=True, max_length=100, default='')
    duration = serializers.CharField(required=False, allow_blank=True, max_length=50, default='')


class LabResultItemSerializer(serializers.Serializer):
    test_name = serializers.CharField(max_length=150)
    result_summary = serializers.CharField(required=False, allow_blank=True, default='')
    test_date = serializers.DateField(required=False, allow_null=True)
    result_file_path = FilePathsField(required=False, allow_null=True)


class ConsultationCreateSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)
    doctor_user_id = serializers.IntegerField(required=False, min_value=1)
    appointment_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    diagnosis = serializers.CharField()
    symptoms = serializers.CharField()
    doctor_notes = serializers.CharField(required=False, allow_blank=True, default='')
    prescriptions = PrescriptionItemSerializer(many=True, required=False, default=list)
    lab_results = LabResultItemSerializer(many=True, required=False, default=list)


class ConsultationUpdateSerializer(serializers.Serializer):
    consultation_id = serializers.IntegerField(min_value=1)
    diagnosis = serializers.CharField(required=False)
    symptoms = serializers.CharField(required=False)
    doctor_notes = serializers.CharField(required=False, allow_blank=True)


class ConsultationIdSerializer(serializers.Serializer):
    consultation_id = serializers.IntegerField(min_value=1)


class ConsultationListQuerySerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)


class PrescriptionCreateSerializer(PrescriptionItemSerializer):
    consultation_id = serializers.IntegerField(min_value=1)


class PrescriptionUpdateSerializer(serializers.Serializer):
    prescription_id = serializers.IntegerField(min_value=1)
    medication_name = serializers.CharField(required=False, max_length=150)
    dosage = serializers.CharField(required=False, allow_blank=True, max_length=100)
    frequency = serializers.CharField(required=False, allow_blank=True, max_length=100)
    duration = serializers.CharField(required=False, allow_blank=True, max_length=50)


class PrescriptionIdSerializer(serializers.Serializer):
    prescription_id = serializers.IntegerField(min_value=1)


class LabResultCreateSerializer(LabResultItemSerializer):
    consultation_id = serializers.IntegerField(min_value=1)


class LabResultUpdateSerializer(serializers.Serializer):
    result_id = serializers.IntegerField(min_value=1)
    test_name = serializers.CharField(required=False, max_length=150)
    result_summary = serializers.CharField(required=False, allow_blank=True)
    test_date = serializers.DateField(required=False, allow_null=True)
    result_file_path = FilePathsField(required=False, allow_null=True)


class LabResultIdSerializer(serializers.Serializer):
    result_id = serializers.IntegerField(min_value=1)


class ChildListQuerySerializer(serializers.Serializer):
    consultation_id = serializers.IntegerField(min_value=1)
