"""ASGI entrypoint for the qaza tracker API."""

from qaza_tracker.api.app import create_app
from qaza_tracker.containers import build_container

app = create_app(build_container())
