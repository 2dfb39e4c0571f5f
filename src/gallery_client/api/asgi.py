"""ASGI entrypoint for the gallery gateway."""

from gallery_client.api.app import create_app
from gallery_client.containers import build_container

app = create_app(build_container())
