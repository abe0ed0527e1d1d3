"""schemaforge: metadata-driven record validation."""

__version__ = "0.1.0"
