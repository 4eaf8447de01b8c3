"""
Database models for the clinic backend.

These models capture the clinic's vocabulary: staff and patient
accounts, appointments and the consultations that follow them, the
prescriptions and lab results owned by a consultation, plus the audit
trail and the re-access requests restricted patients file.  Field names
follow the JSON keys the mobile client reads so that views can build
responses without renaming.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Login account with a clinic role.

    Staff sign in with ``username``; patients sign in with their national
    id and full name, which live on :class:`Patient`.  ``is_active`` is
    used as a soft delete: deactivated accounts are refused at login.
    """
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_NURSE = 'nurse'
    ROLE_PATIENT = 'patient'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_NURSE, 'Nurse'),
        (ROLE_PATIENT, 'Patient'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)

    @property
    def display_name(self) -> str:
        """Name shown in greetings and logs ("Administrator" for admins)."""
        if self.role == self.ROLE_DOCTOR and hasattr(self, 'doctor_profile'):
            return self.doctor_profile.full_name
        if self.role == self.ROLE_NURSE and hasattr(self, 'nurse_profile'):
            return self.nurse_profile.full_name
        if self.role == self.ROLE_PATIENT and hasattr(self, 'patient_profile'):
            return self.patient_profile.full_name
        if self.role == self.ROLE_ADMIN:
            return 'Administrator'
        return self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Specialty(models.Model):
    """Medical specialty a doctor practices (Cardiology, Pediatrics...)."""
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        verbose_name_plural = 'specialties'

    def __str__(self) -> str:
        return self.name


class Department(models.Model):
    """Ward or unit a nurse is attached to."""
    name = models.CharField(max_length=100, unique=True)

    def __str__(self) -> str:
        return self.name


class Doctor(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    full_name = models.CharField(max_length=150)
    phone_number = models.CharField(max_length=20, blank=True)
    specialty = models.ForeignKey(Specialty, null=True, blank=True, on_delete=models.SET_NULL, related_name='doctors')

    def __str__(self) -> str:
        return f"Dr. {self.full_name}"


class Nurse(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='nurse_profile')
    full_name = models.CharField(max_length=150)
    phone_number = models.CharField(max_length=20, blank=True)
    department = models.ForeignKey(Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='nurses')

    def __str__(self) -> str:
        return self.full_name


class Patient(models.Model):
    """Medical identity of a patient, linked one-to-one to a login account.

    ``account_status`` is governed by the backend: three consecutive
    missed appointments restrict the account, an approved re-access
    request lifts the restriction.
    """
    STATUS_ACTIVE = 'active'
    STATUS_RESTRICTED = 'restricted'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_RESTRICTED, 'Restricted'),
    ]
    GENDER_CHOICES = [
        ('Male', 'Male'),
        ('Female', 'Female'),
    ]
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='patient_profile')
    national_id = models.CharField(max_length=50, unique=True)
    full_name = models.CharField(max_length=150, db_index=True)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    address = models.TextField(blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    blood_type = models.CharField(max_length=5, blank=True)
    account_status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    consecutive_missed_appointments = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def is_restricted(self) -> bool:
        return self.account_status == self.STATUS_RESTRICTED

    def __str__(self) -> str:
        return f"{self.full_name} ({self.national_id})"


class Appointment(models.Model):
    STATUS_SCHEDULED = 'scheduled'
    STATUS_COMPLETED = 'completed'
    STATUS_MISSED = 'missed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_MISSED, 'Missed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='appointments')
    appointment_date = models.DateTimeField(db_index=True)
    reason_for_visit = models.TextField(blank=True)
    # Filtered on by every list screen
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'status', 'appointment_date']),
        ]

    def __str__(self) -> str:
        return f"Appointment {self.pk} {self.patient_id}->{self.doctor_id} [{self.status}]"


class Consultation(models.Model):
    """A visit record.  ``appointment`` is empty for walk-in consultations."""
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='consultations'
    )
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='consultations')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='consultations')
    visit_date = models.DateTimeField(default=timezone.now)
    diagnosis = models.TextField(blank=True)
    symptoms = models.TextField(blank=True)
    doctor_notes = models.TextField(blank=True)

    class Meta:
        indexes = [models.Index(fields=['patient', 'visit_date'])]

    def __str__(self) -> str:
        return f"Consultation {self.pk} for {self.patient_id}"


class Prescription(models.Model):
    consultation = models.ForeignKey(Consultation, on_delete=models.CASCADE, related_name='prescriptions')
    medication_name = models.CharField(max_length=150)
    dosage = models.CharField(max_length=100, blank=True)
    frequency = models.CharField(max_length=100, blank=True)
    duration = models.CharField(max_length=50, blank=True)

    class Meta:
        ordering = ['id']

    def __str__(self) -> str:
        return f"{self.medication_name} {self.dosage}".strip()


class LabResult(models.Model):
    """Lab test outcome.

    ``result_file_path`` holds a JSON array of server-relative paths when
    files are attached.  Rows written by older clients may hold a single
    bare path instead.
    """
    consultation = models.ForeignKey(Consultation, on_delete=models.CASCADE, related_name='lab_results')
    test_name = models.CharField(max_length=150)
    result_summary = models.TextField(blank=True)
    result_file_path = models.TextField(null=True, blank=True)
    test_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ['id']

    def __str__(self) -> str:
        return self.test_name


class SystemLog(models.Model):
    """Audit trail entry shown on the admin activity screen."""
    action_type = models.CharField(max_length=50, db_index=True)
    action_description = models.TextField()
    user = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='system_logs')
    user_name = models.CharField(max_length=150, blank=True, null=True)
    user_role = models.CharField(max_length=20, blank=True, null=True)
    target_type = models.CharField(max_length=50, blank=True, null=True)
    target_id = models.IntegerField(blank=True, null=True)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=['action_type', 'created_at']),
        ]

    def __str__(self):
        return f"{self.action_type}:{self.user_id}@{self.created_at:%F %T}"


class ReaccessRequest(models.Model):
    """Appeal from a restricted patient asking to have the account reactivated."""
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='reaccess_requests')
    reason = models.TextField()
    contact_phone = models.CharField(max_length=20, blank=True, null=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    admin_response = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(blank=True, null=True)
    processed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='processed_reaccess_requests'
    )

    def __str__(self):
        return f"reaccess {self.pk} patient={self.patient_id} [{self.status}]"
