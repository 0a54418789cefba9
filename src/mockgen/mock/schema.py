"""
MockGen Schema Inference

Infers structural JSON schemas from example response bodies.

Schema nodes are a closed set of types: primitives, arrays and
references to named object schemas held in a SchemaRegistry.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

SCHEMA_REF_PREFIX = '#/components/schemas/'


@dataclass(frozen=True)
class PrimitiveSchema:
    """A JSON scalar type."""

    type: str
    nullable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        if self.nullable:
            return {'nullable': True}
        return {'type': self.type}


@dataclass(frozen=True)
class ArraySchema:
    """An array whose items follow one schema."""

    items: 'SchemaNode'

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'array', 'items': self.items.to_dict()}


@dataclass(frozen=True)
class ObjectRef:
    """A reference to a registered object schema."""

    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {'$ref': SCHEMA_REF_PREFIX + self.name}


SchemaNode = Union[PrimitiveSchema, ArraySchema, ObjectRef]


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def primitive_type(value: Any) -> PrimitiveSchema:
    """Map a Python JSON scalar to its JSON schema type."""
    if value is None:
        return PrimitiveSchema('null', nullable=True)
    if isinstance(value, bool):
        return PrimitiveSchema('boolean')
    if isinstance(value, int):
        return PrimitiveSchema('integer')
    if isinstance(value, float):
        return PrimitiveSchema('number')
    return PrimitiveSchema('string')


@dataclass
class SchemaRegistry:
    """
    Named object schemas collected during one generation pass.

    A name is registered once. A later value inferred under an already
    registered name reuses the first registration even if its shape
    differs; callers that need distinct shapes must use distinct names.

    Example:
        registry = SchemaRegistry()
        node = registry.infer({'id': 1, 'tags': ['a']}, 'User')
        node.to_dict()        # {'$ref': '#/components/schemas/User'}
        registry.to_dict()    # {'User': {...}, 'Tags': ...}
    """

    schemas: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def infer(self, value: Any, name: str) -> SchemaNode:
        """
        Infer the schema of an example value.

        Args:
            value: Example JSON value
            name: Schema name used if value is an object

        Returns:
            Schema node for the value
        """
        if isinstance(value, list):
            return ArraySchema(items=self.infer(value[0] if value else {}, name))

        if isinstance(value, dict):
            if name not in self.schemas:
                # Reserve the name first so self-similar nested values terminate
                entry: Dict[str, Any] = {'type': 'object', 'properties': {}, 'required': []}
                self.schemas[name] = entry
                properties: Dict[str, Any] = {}
                required: List[str] = []
                for key, item in value.items():
                    properties[key] = self.infer(item, _capitalize(key)).to_dict()
                    required.append(key)
                entry['properties'] = properties
                entry['required'] = required
            return ObjectRef(name)

        return primitive_type(value)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return dict(self.schemas)
