"""Load field and object metadata from YAML files.

Layout:
    metadata/
        fields/*.yaml    one ``field:`` document, or ``fields: [...]``
        objects/*.yaml   one ``object:`` document
"""

from pathlib import Path
from typing import Any

import yaml

from schemaforge.metadata.types import FieldDefinition, ObjectDefinition


class MetadataError(ValueError):
    """Metadata files could not be loaded into a consistent model."""


class MetadataLoader:
    """Loads field and object definitions from YAML files."""

    def __init__(self, metadata_path: Path):
        self.metadata_path = metadata_path
        self.fields: dict[str, FieldDefinition] = {}
        self.objects: dict[str, ObjectDefinition] = {}

    def load_all(self) -> None:
        """Load all fields, then all objects."""
        self.fields.clear()
        self.objects.clear()
        self._load_fields()
        self._load_objects()

    def _read_yaml(self, yaml_file: Path) -> Any:
        try:
            with open(yaml_file) as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise MetadataError(f"{yaml_file}: YAML parse error: {e}") from e

    def _load_fields(self) -> None:
        fields_path = self.metadata_path / "fields"
        if not fields_path.exists():
            return

        for yaml_file in sorted(fields_path.glob("*.yaml")):
            data = self._read_yaml(yaml_file)
            if not data:
                continue
            if "field" in data:
                documents = [data]
            else:
                documents = data.get("fields", [])
            for doc in documents:
                self.add_field(self._resolve(FieldDefinition.from_dict, doc, yaml_file))

    def _load_objects(self) -> None:
        objects_path = self.metadata_path / "objects"
        if not objects_path.exists():
            return

        for yaml_file in sorted(objects_path.glob("*.yaml")):
            data = self._read_yaml(yaml_file)
            if data and "object" in data:
                self.add_object(self._resolve(ObjectDefinition.from_dict, data, yaml_file))

    def _resolve(self, factory, data: dict, yaml_file: Path):
        try:
            return factory(data)
        except (KeyError, TypeError, ValueError) as e:
            raise MetadataError(f"{yaml_file}: invalid definition: {e}") from e

    def add_field(self, field: FieldDefinition) -> None:
        if field.short_name in self.fields:
            raise MetadataError(f"Duplicate field short name '{field.short_name}'")
        self.fields[field.short_name] = field

    def add_object(self, obj: ObjectDefinition) -> None:
        if obj.short_name in self.objects:
            raise MetadataError(f"Duplicate object short name '{obj.short_name}'")
        self.objects[obj.short_name] = obj

    def get_field(self, name: str) -> FieldDefinition | None:
        return self.fields.get(name)

    def get_object(self, name: str) -> ObjectDefinition | None:
        return self.objects.get(name)

    def list_fields(self) -> list[str]:
        return list(self.fields.keys())

    def list_objects(self) -> list[str]:
        return list(self.objects.keys())

    def fields_for(self, obj: ObjectDefinition) -> list[FieldDefinition]:
        """Field definitions referenced by an object, in reference order.

        References that do not resolve are left out.
        """
        return [
            self.fields[ref.field_short_name]
            for ref in obj.fields
            if ref.field_short_name in self.fields
        ]

    def unresolved_refs(self, obj: ObjectDefinition) -> list[str]:
        """Field short names an object references but no field defines."""
        return [name for name in obj.field_names() if name not in self.fields]
