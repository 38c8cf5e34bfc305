"""ASGI entrypoint for the nutrition balance API."""

from nutrition_balance.api.app import create_app
from nutrition_balance.containers import build_container

app = create_app(build_container())
