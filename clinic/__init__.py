"""Clinic application for the AllCare hospital backend.

This package contains models, services, serializers, views and route
registrations for patient, appointment, billing, admission, staff and
pharmacy management.
"""
