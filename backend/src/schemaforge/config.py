"""Runtime configuration for schemaforge."""

from __future__ import annotations

import importlib
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Application settings.

    Attributes:
        metadata_path: Root directory holding ``fields/`` and ``objects/``
        validator_modules: Modules imported at startup; importing them is
            expected to register custom validators
        strict_field_refs: Treat unresolved object field references as
            configuration errors instead of skipping them
        log_level: Logging level name
        port: Port the API listens on
    """

    metadata_path: Path
    validator_modules: list[str] = field(default_factory=list)
    strict_field_refs: bool = False
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> Settings:
        """Create settings from environment variables.

        SCHEMAFORGE_METADATA_PATH    metadata root (default: {base_path}/metadata)
        SCHEMAFORGE_VALIDATOR_MODULES  comma-separated module names
        SCHEMAFORGE_STRICT_FIELD_REFS  1/true/yes to enable
        SCHEMAFORGE_LOG_LEVEL        default INFO
        SCHEMAFORGE_PORT             default 8000
        """
        base_path = base_path or Path.cwd()

        metadata_path = os.environ.get("SCHEMAFORGE_METADATA_PATH")
        modules = os.environ.get("SCHEMAFORGE_VALIDATOR_MODULES", "")

        return cls(
            metadata_path=Path(metadata_path) if metadata_path else base_path / "metadata",
            validator_modules=[m.strip() for m in modules.split(",") if m.strip()],
            strict_field_refs=(
                os.environ.get("SCHEMAFORGE_STRICT_FIELD_REFS", "").lower() in _TRUTHY
            ),
            log_level=os.environ.get("SCHEMAFORGE_LOG_LEVEL", "INFO").upper(),
            port=int(os.environ.get("SCHEMAFORGE_PORT", "8000")),
        )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_validator_modules(modules: list[str]) -> None:
    """Import modules that register custom validators as a side effect.

    Raises:
        ImportError: If a module cannot be imported
    """
    for name in modules:
        importlib.import_module(name)
        logger.info("Loaded custom validators from '%s'", name)
