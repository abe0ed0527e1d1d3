"""
metadata/validator.py: lint schemaforge YAML metadata files.

Two passes:
  1. Structure: each file under ``fields/`` and ``objects/`` is checked
     against the bundled JSON Schemas (Draft 2020-12).
  2. References: every object field reference must name a defined field.
     Unresolved references are reported as warnings, since the schema
     builder skips them unless strict field references are enabled.

Usage:
    from schemaforge.metadata.validator import validate_metadata_dir

    issues = validate_metadata_dir(Path("metadata"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from schemaforge.metadata.loader import MetadataError, MetadataLoader

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"

# Map subdirectory name → schema filename
_SUBDIR_SCHEMA: dict[str, str] = {
    "fields": "field.schema.json",
    "objects": "object.schema.json",
}


@dataclass
class ValidationIssue:
    """A single finding for a metadata YAML file."""

    file: Path
    message: str
    path: str = ""          # location within the document, e.g. "fields[0]/datatype"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open() as fh:
        return json.load(fh)


def _load_registry() -> Registry:
    """Build a jsonschema Registry containing all bundled schemas."""
    resources = []
    for name in ("_defs.schema.json", *_SUBDIR_SCHEMA.values()):
        schema = _load_schema(name)
        resources.append(
            (schema["$id"], Resource(contents=schema, specification=DRAFT202012))
        )
    return Registry().with_resources(resources)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_yaml_file(
    yaml_path: Path,
    schema_name: str,
    *,
    registry: Registry | None = None,
) -> list[ValidationIssue]:
    """
    Validate a single YAML file against the named schema.

    Args:
        yaml_path:   Path to the YAML file to validate.
        schema_name: Filename of the schema (e.g. ``"field.schema.json"``).
        registry:    Pre-built schema registry.  Built automatically if omitted.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            doc = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if doc is None:
        return [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    if registry is None:
        registry = _load_registry()

    validator = Draft202012Validator(_load_schema(schema_name), registry=registry)

    return [
        ValidationIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=_json_path)
    ]


def check_references(metadata_dir: Path, loader: MetadataLoader) -> list[ValidationIssue]:
    """Report object field references that no field definition satisfies."""
    issues: list[ValidationIssue] = []
    for name in sorted(loader.list_objects()):
        obj = loader.get_object(name)
        if obj is None:
            continue
        for missing in loader.unresolved_refs(obj):
            issues.append(
                ValidationIssue(
                    file=metadata_dir / "objects",
                    message=f"Object '{name}' references unknown field '{missing}'",
                    path=name,
                    severity="warning",
                )
            )
    return issues


def validate_metadata_dir(
    metadata_dir: Path,
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """
    Validate all YAML files under *metadata_dir*.

    Args:
        metadata_dir: Root metadata directory (contains ``fields/`` and ``objects/``).
        strict:       If ``True``, warnings are escalated to errors.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not metadata_dir.is_dir():
        return [
            ValidationIssue(
                file=metadata_dir,
                message=f"Metadata directory does not exist: {metadata_dir}",
            )
        ]

    try:
        registry = _load_registry()
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        return [
            ValidationIssue(
                file=_SCHEMAS_DIR,
                message=f"Failed to load JSON Schema files: {exc}",
            )
        ]

    all_issues: list[ValidationIssue] = []

    for subdir, schema_name in _SUBDIR_SCHEMA.items():
        target = metadata_dir / subdir
        if not target.is_dir():
            continue
        for yaml_file in sorted(target.glob("*.yaml")):
            all_issues.extend(validate_yaml_file(yaml_file, schema_name, registry=registry))

    # Reference checks need a loadable model; structural errors come first
    if not any(issue.severity == "error" for issue in all_issues):
        loader = MetadataLoader(metadata_dir)
        try:
            loader.load_all()
        except MetadataError as exc:
            all_issues.append(ValidationIssue(file=metadata_dir, message=str(exc)))
        else:
            all_issues.extend(check_references(metadata_dir, loader))

    if strict:
        for issue in all_issues:
            if issue.severity == "warning":
                issue.severity = "error"

    for issue in all_issues:
        logger.debug("Metadata issue: %s", issue)

    return all_issues
