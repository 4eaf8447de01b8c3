"""
Django admin registrations for the clinic models.

Gives superusers a ``/admin/`` view over accounts, schedules and the
activity log for manual inspection during development.
"""

from django.contrib import admin

from .models import (
    Appointment,
    Consultation,
    Department,
    Doctor,
    LabResult,
    Nurse,
    Patient,
    Prescription,
    ReaccessRequest,
    Specialty,
    SystemLog,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_active', 'is_staff', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'first_name', 'last_name')


@admin.register(Specialty, Department)
class LookupAdmin(admin.ModelAdmin):
    list_display = ('id', 'name')
    search_fields = ('name',)


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'user', 'specialty', 'phone_number')
    list_filter = ('specialty',)
    search_fields = ('full_name', 'user__username')


@admin.register(Nurse)
class NurseAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'user', 'department', 'phone_number')
    list_filter = ('department',)
    search_fields = ('full_name', 'user__username')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'national_id', 'gender', 'account_status', 'consecutive_missed_appointments')
    list_filter = ('account_status', 'gender')
    search_fields = ('full_name', 'national_id', 'phone_number')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'appointment_date', 'status')
    list_filter = ('status', 'doctor')
    search_fields = ('patient__full_name', 'doctor__full_name')


class PrescriptionInline(admin.TabularInline):
    model = Prescription
    extra = 0


class LabResultInline(admin.TabularInline):
    model = LabResult
    extra = 0


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'visit_date', 'diagnosis')
    search_fields = ('patient__full_name', 'diagnosis')
    inlines = [PrescriptionInline, LabResultInline]


@admin.register(SystemLog)
class SystemLogAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action_type', 'user_name', 'user_role', 'target_type', 'target_id', 'ip_address')
    list_filter = ('action_type', 'user_role')
    search_fields = ('action_description', 'user_name')


@admin.register(ReaccessRequest)
class ReaccessRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'status', 'created_at', 'processed_at')
    list_filter = ('status',)
    search_fields = ('patient__full_name', 'patient__national_id')
