"""
Records app for the clinic backend.

This package contains the models, views, serializers and services that
back the clinic mobile application: appointments, consultations and
their prescriptions and lab results, patient and staff accounts, the
system activity log and re-access requests.
"""
