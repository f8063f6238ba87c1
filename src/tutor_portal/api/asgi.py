"""ASGI entrypoint for the tutor portal API."""

from tutor_portal.api.app import create_app
from tutor_portal.containers import build_container

app = create_app(build_container())
