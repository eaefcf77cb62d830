"""Pydantic models describing record schemas and registry payloads."""

from __future__ import annotations

import hashlib
import json
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from fastavro import parse_schema
from fastavro.schema import SchemaParseException, UnknownType
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from errors import SchemaDefinitionError


class FieldKind(str, Enum):
    """Value types a field can declare."""

    string = "string"
    bytes = "bytes"
    int = "int"
    long = "long"
    float = "float"
    double = "double"
    boolean = "boolean"
    enum = "enum"
    map = "map"


_PRIMITIVE_KINDS = {
    FieldKind.string,
    FieldKind.bytes,
    FieldKind.int,
    FieldKind.long,
    FieldKind.float,
    FieldKind.double,
    FieldKind.boolean,
}


class FieldType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: FieldKind
    name: Optional[str] = None
    symbols: Tuple[str, ...] = ()
    values: Optional["FieldType"] = None

    def describe(self) -> str:
        if self.kind is FieldKind.enum:
            return f"enum {self.name}"
        if self.kind is FieldKind.map and self.values is not None:
            return f"map<{self.values.describe()}>"
        return self.kind.value

    def to_avro(self) -> Union[str, Dict[str, Any]]:
        if self.kind is FieldKind.enum:
            return {"type": "enum", "name": self.name, "symbols": list(self.symbols)}
        if self.kind is FieldKind.map:
            assert self.values is not None
            return {"type": "map", "values": self.values.to_avro()}
        return self.kind.value


class FieldSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: FieldType
    optional: bool = False
    doc: Optional[str] = None
    has_default: bool = False
    default: Any = None

    def describe(self) -> str:
        described = self.type.describe()
        return f"optional {described}" if self.optional else described

    def to_avro(self) -> Dict[str, Any]:
        type_json: Any = self.type.to_avro()
        if self.optional:
            type_json = ["null", type_json]
        payload: Dict[str, Any] = {"name": self.name, "type": type_json}
        if self.doc:
            payload["doc"] = self.doc
        if self.has_default:
            payload["default"] = self.default
        return payload


class RecordSchema(BaseModel):
    """A named, versioned record definition."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: Optional[str] = None
    doc: Optional[str] = None
    version: int = Field(default=1, ge=1)
    fields: Tuple[FieldSchema, ...]

    @property
    def full_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}.{self.name}"
        return self.name

    @property
    def field_names(self) -> List[str]:
        return [field.name for field in self.fields]

    def field(self, name: str) -> Optional[FieldSchema]:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None

    def to_avro(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": "record", "name": self.name}
        if self.namespace:
            payload["namespace"] = self.namespace
        if self.doc:
            payload["doc"] = self.doc
        payload["version"] = self.version
        payload["fields"] = [field.to_avro() for field in self.fields]
        return payload

    def canonical_json(self) -> str:
        return json.dumps(self.to_avro(), sort_keys=True, separators=(",", ":"))

    def fingerprint(self) -> str:
        return hashlib.sha256(self.canonical_json().encode("utf-8")).hexdigest()

    def parsed(self) -> Dict[str, Any]:
        """The fastavro form of this schema, as the binary codec needs it."""
        return _parse_canonical(self.canonical_json())

    @classmethod
    def from_avro(cls, definition: Union[str, bytes, Mapping[str, Any]]) -> "RecordSchema":
        """Parse an Avro-style JSON record definition."""
        if isinstance(definition, (str, bytes)):
            try:
                definition = json.loads(definition)
            except json.JSONDecodeError as exc:
                raise SchemaDefinitionError(f"Schema definition is not valid JSON: {exc}") from exc
        if not isinstance(definition, Mapping):
            raise SchemaDefinitionError("Schema definition must be a JSON object.")
        if definition.get("type") != "record":
            raise SchemaDefinitionError(
                f"Unsupported top-level schema type {definition.get('type')!r}; expected 'record'."
            )
        raw_fields = definition.get("fields")
        if not isinstance(raw_fields, list):
            raise SchemaDefinitionError("Record definition is missing its 'fields' list.")
        try:
            parse_schema(dict(definition))
        except (SchemaParseException, UnknownType, KeyError, TypeError, ValueError) as exc:
            raise SchemaDefinitionError(f"Invalid Avro schema: {exc}") from exc

        fields = tuple(_parse_field(raw) for raw in raw_fields)
        names = [field.name for field in fields]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise SchemaDefinitionError(f"Duplicate field names: {', '.join(duplicates)}")

        try:
            return cls(
                name=definition.get("name"),
                namespace=definition.get("namespace"),
                doc=definition.get("doc"),
                version=definition.get("version", 1),
                fields=fields,
            )
        except PydanticValidationError as exc:
            raise SchemaDefinitionError(f"Invalid record definition: {exc}") from exc


@lru_cache(maxsize=None)
def _parse_canonical(text: str) -> Dict[str, Any]:
    return parse_schema(json.loads(text))


def _parse_field(raw: Any) -> FieldSchema:
    if not isinstance(raw, Mapping) or not isinstance(raw.get("name"), str):
        raise SchemaDefinitionError(f"Field definition must be an object with a name: {raw!r}")
    name = raw["name"]
    raw_type = raw.get("type")
    optional = False
    if isinstance(raw_type, list):
        branches = [branch for branch in raw_type if branch != "null"]
        if len(raw_type) != 2 or len(branches) != 1:
            raise SchemaDefinitionError(
                f"Field {name!r}: only ['null', T] unions are supported, got {raw_type!r}"
            )
        optional = True
        raw_type = branches[0]

    field_type = _parse_type(name, raw_type)
    has_default = "default" in raw
    default = raw.get("default")
    if optional and has_default and default is not None:
        raise SchemaDefinitionError(f"Field {name!r}: optional fields may only default to null")
    if field_type.kind is FieldKind.enum and has_default and default not in field_type.symbols:
        raise SchemaDefinitionError(f"Field {name!r}: default {default!r} is not an enum symbol")

    return FieldSchema(
        name=name,
        type=field_type,
        optional=optional,
        doc=raw.get("doc"),
        has_default=has_default,
        default=default,
    )


def _parse_type(field_name: str, raw: Any) -> FieldType:
    if isinstance(raw, str):
        try:
            kind = FieldKind(raw)
        except ValueError as exc:
            raise SchemaDefinitionError(
                f"Field {field_name!r}: unsupported type {raw!r}"
            ) from exc
        if kind not in _PRIMITIVE_KINDS:
            raise SchemaDefinitionError(
                f"Field {field_name!r}: type {raw!r} needs a complex definition"
            )
        return FieldType(kind=kind)

    if isinstance(raw, Mapping):
        type_name = raw.get("type")
        if type_name == "enum":
            symbols = raw.get("symbols")
            if not isinstance(symbols, list) or not symbols:
                raise SchemaDefinitionError(f"Field {field_name!r}: enum requires symbols")
            if len(set(symbols)) != len(symbols):
                raise SchemaDefinitionError(f"Field {field_name!r}: enum symbols must be unique")
            return FieldType(kind=FieldKind.enum, name=raw.get("name"), symbols=tuple(symbols))
        if type_name == "map":
            return FieldType(kind=FieldKind.map, values=_parse_type(field_name, raw.get("values")))
        if isinstance(type_name, str) and type_name in FieldKind.__members__:
            return _parse_type(field_name, type_name)

    raise SchemaDefinitionError(f"Field {field_name!r}: unsupported type {raw!r}")


class RegisteredSchema(BaseModel):
    """Response body of a registry schema lookup."""

    model_config = ConfigDict(populate_by_name=True)

    schema_text: str = Field(alias="schema")
    schema_type: str = Field(default="AVRO", alias="schemaType")
    subject: Optional[str] = None
    version: Optional[int] = None
    id: Optional[int] = None


class SchemaIdResponse(BaseModel):
    id: int = Field(..., ge=0)


class CompatibilityReport(BaseModel):
    """Outcome of a registry compatibility check."""

    compatible: bool = Field(..., alias="is_compatible")
    violations: List[str] = Field(default_factory=list, alias="messages")

    model_config = ConfigDict(populate_by_name=True)
