"""
ASGI config for the AllCare project.

HTTP only; the API is request/response and has no websocket routes.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "allcare.settings")

application = get_asgi_application()
