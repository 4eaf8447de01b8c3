"""
ASGI config for the clinic project.

Only HTTP is served; the mobile client polls and reloads after each
mutation so no WebSocket routing is wired here.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "clinic.settings")

application = get_asgi_application()
