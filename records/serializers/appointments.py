from rest_framework import serializers

from records.models import Appointment

DATETIME_INPUTS = ['%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M', 'iso-8601']
STATUS_VALUES = [value for value, _ in Appointment.STATUS_CHOICES]


class AppointmentListQuerySerializer(serializers.Serializer):
    doctor_user_id = serializers.IntegerField(required=False, min_value=1)
    patient_id = serializers.IntegerField(required=False, min_value=1)
    status = serializers.ChoiceField(choices=STATUS_VALUES + ['all'], required=False)


class AppointmentCreateSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)
    # Defaults to the calling doctor
    doctor_user_id = serializers.IntegerField(required=False, min_value=1)
    appointment_date = serializers.DateTimeField(input_formats=DATETIME_INPUTS)
    reason_for_visit = serializers.CharField(required=False, allow_blank=True, default='')


class AppointmentUpdateSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField(min_value=1)
    appointment_date = serializers.DateTimeField(input_formats=DATETIME_INPUTS)
    reason_for_visit = serializers.CharField(required=False, allow_blank=True)


class AppointmentStatusSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(choices=STATUS_VALUES, error_messages={
        'invalid_choice': 'Invalid status "{input}"',
    })


class AppointmentIdSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField(min_value=1)
