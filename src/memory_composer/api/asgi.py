"""ASGI entrypoint for the memory composer API."""

from memory_composer.api.app import create_app
from memory_composer.containers import build_container

app = create_app(build_container())
