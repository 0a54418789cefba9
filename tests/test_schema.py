"""
Tests for MockGen Schema Inference

Tests the schema registry including:
- Primitive type mapping
- Object registration and references
- Array item inference
- First-registration-wins naming
"""

from mockgen.mock.schema import ArraySchema, ObjectRef, PrimitiveSchema, SchemaRegistry, primitive_type


class TestPrimitiveType:
    """Test scalar mapping."""

    def test_scalars(self):
        assert primitive_type(True).to_dict() == {'type': 'boolean'}
        assert primitive_type(3).to_dict() == {'type': 'integer'}
        assert primitive_type(3.5).to_dict() == {'type': 'number'}
        assert primitive_type('x').to_dict() == {'type': 'string'}

    def test_null(self):
        assert primitive_type(None).to_dict() == {'nullable': True}


class TestSchemaRegistry:
    """Test object schema registration."""

    def test_object_registered_by_name(self):
        registry = SchemaRegistry()

        node = registry.infer({'id': 1, 'name': 'x'}, 'User')

        assert node == ObjectRef('User')
        assert node.to_dict() == {'$ref': '#/components/schemas/User'}
        assert registry.to_dict()['User'] == {
            'type': 'object',
            'properties': {'id': {'type': 'integer'}, 'name': {'type': 'string'}},
            'required': ['id', 'name'],
        }

    def test_nested_objects_named_after_keys(self):
        registry = SchemaRegistry()

        registry.infer({'owner': {'id': 1}}, 'Repo')

        assert registry.to_dict()['Repo']['properties']['owner'] == {'$ref': '#/components/schemas/Owner'}
        assert 'Owner' in registry.to_dict()

    def test_array_items_from_first_element(self):
        registry = SchemaRegistry()

        node = registry.infer([{'id': 1}, {'id': 2, 'extra': True}], 'Users')

        assert isinstance(node, ArraySchema)
        assert node.to_dict() == {'type': 'array', 'items': {'$ref': '#/components/schemas/Users'}}
        assert list(registry.to_dict()['Users']['properties']) == ['id']

    def test_array_of_scalars(self):
        node = SchemaRegistry().infer(['a', 'b'], 'Tags')

        assert node.to_dict() == {'type': 'array', 'items': {'type': 'string'}}

    def test_empty_array_items_are_objects(self):
        registry = SchemaRegistry()

        assert registry.infer([], 'Items').to_dict()['items'] == {'$ref': '#/components/schemas/Items'}

    def test_first_registration_wins(self):
        """A reused name keeps the first shape."""
        registry = SchemaRegistry()

        registry.infer({'a': 1}, 'Thing')
        registry.infer({'b': 'x'}, 'Thing')

        assert list(registry.to_dict()['Thing']['properties']) == ['a']

    def test_self_similar_nesting_terminates(self):
        registry = SchemaRegistry()

        registry.infer({'node': {'node': {'node': {}}}}, 'Node')

        assert registry.to_dict()['Node']['properties']['node'] == {'$ref': '#/components/schemas/Node'}

    def test_primitive_node_types(self):
        assert SchemaRegistry().infer(1, 'X') == PrimitiveSchema('integer')
