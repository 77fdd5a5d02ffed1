"""ASGI entrypoint for the reference content server."""

from catalog_admin.api.app import create_app

app = create_app()
