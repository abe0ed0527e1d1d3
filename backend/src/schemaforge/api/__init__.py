"""HTTP boundary for the validation engine."""

from schemaforge.api.app import app, create_app

__all__ = ["app", "create_app"]
