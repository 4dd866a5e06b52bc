"""
Bearer token authentication.

This module defines a subclass of simplejwt's ``JWTAuthentication`` so
the project's configuration has a stable import path.  Requests carry
``Authorization: Bearer <access token>``; a missing, expired or invalid
token is answered with 401 which the API client treats as a forced
logout.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication


class BearerAuthentication(JWTAuthentication):
    """JWT authentication using the ``Bearer`` keyword."""

    www_authenticate_realm = 'allcare'
