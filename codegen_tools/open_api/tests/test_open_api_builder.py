import pytest

from codegen_tools.open_api.builder import ModelRegistry, build_component_models, build_model
from codegen_tools.open_api.ir import Model, Parameter
from codegen_tools.shared.errors import SchemaValidationError


def make_spec(schemas):
    return {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1.0.0"},
        "components": {"schemas": schemas},
    }


class TestModelRegistry:
    def test_add_and_get(self):
        registry = ModelRegistry()
        model = registry.add(Model(name="Pet"))
        assert registry.get("Pet") is model
        assert "Pet" in registry
        assert len(registry) == 1
        assert list(registry) == [model]

    def test_get_missing(self):
        registry = ModelRegistry()
        assert registry.get("Pet") is None
        assert registry.get(None) is None
        assert registry.get("") is None

    def test_duplicate_name(self):
        registry = ModelRegistry()
        registry.add(Model(name="Pet"))
        with pytest.raises(SchemaValidationError, match="more than one schema"):
            registry.add(Model(name="Pet"))

    def test_for_ref(self):
        registry = ModelRegistry()
        model = registry.add(Model(name="Pet"))
        assert registry.for_ref("#/components/schemas/Pet") is model
        assert registry.for_ref("#/components/responses/Pet") is None

    def test_iteration_is_a_snapshot(self):
        registry = ModelRegistry()
        registry.add(Model(name="A"))
        for _ in registry:
            registry.add(Model(name="B"))
            break
        assert [m.name for m in registry] == ["A", "B"]


class TestBuildModel:
    def test_primitive(self):
        model = build_model({}, {"type": "integer", "format": "int64", "description": "count"})
        assert model.kind == "primitive"
        assert model.type == "integer"
        assert model.format == "int64"
        assert model.openapi_type == "integer"
        assert model.description == "count"

    def test_binary(self):
        model = build_model({}, {"type": "string", "format": "binary"})
        assert model.kind == "primitive"
        assert model.type == "binary"

    def test_untyped(self):
        model = build_model({}, {})
        assert model.kind == "primitive"
        assert model.type == "any"

    def test_flags(self):
        model = build_model({}, {
            "type": "string",
            "nullable": True,
            "readOnly": True,
            "deprecated": True,
            "default": "x",
            "x-custom": 1,
        })
        assert model.is_nullable
        assert model.is_read_only
        assert model.deprecated
        assert model.default == "x"
        assert model.vendor_extensions == {"x-custom": 1}

    def test_enum(self):
        model = build_model({}, {"type": "string", "enum": ["a", "b"]}, "Status")
        assert model.kind == "enum"
        assert model.type == "string"
        assert model.enum == ["a", "b"]

    def test_object(self):
        model = build_model({}, {
            "type": "object",
            "required": ["id"],
            "properties": {
                "id": {"type": "integer"},
                "'quoted'": {"type": "string"},
            },
        }, "Pet")
        assert model.kind == "reference"
        assert model.type == "Pet"
        assert [p.name for p in model.properties] == ["id", "quoted"]
        assert [p.is_required for p in model.properties] == [True, False]
        assert not model.has_additional_properties

    def test_anonymous_object(self):
        model = build_model({}, {"properties": {"a": {"type": "string"}}})
        assert model.kind == "reference"
        assert model.type == "object"

    def test_object_with_additional_properties(self):
        model = build_model({}, {
            "type": "object",
            "properties": {"a": {"type": "string"}},
            "additionalProperties": {"type": "integer"},
        }, "Mixed")
        assert model.has_additional_properties
        assert model.additional_properties_model.type == "integer"

    def test_object_with_additional_properties_true(self):
        model = build_model({}, {
            "type": "object",
            "properties": {"a": {"type": "string"}},
            "additionalProperties": True,
        }, "Open")
        assert model.has_additional_properties
        assert model.additional_properties_model.type == "any"

    def test_pattern_properties(self):
        model = build_model({}, {
            "type": "object",
            "patternProperties": {"^S_": {"type": "string"}},
        }, "Patterned")
        assert model.kind == "reference"
        assert model.pattern_properties_models["^S_"].type == "string"

    def test_dictionary(self):
        model = build_model({}, {"type": "object", "additionalProperties": {"type": "string"}})
        assert model.kind == "dictionary"
        assert model.type == "string"
        assert model.link.type == "string"

    def test_free_form_object(self):
        model = build_model({}, {"type": "object"})
        assert model.kind == "dictionary"
        assert model.type == "any"
        assert model.link.type == "any"

    def test_dictionary_of_references(self):
        model = build_model({}, {
            "type": "object",
            "additionalProperties": {"$ref": "#/components/schemas/Pet"},
        })
        assert model.kind == "dictionary"
        assert model.type == "Pet"
        assert model.link is None

    def test_array(self):
        model = build_model({}, {"type": "array", "items": {"type": "string"}})
        assert model.kind == "array"
        assert model.type == "string"
        assert model.link.kind == "primitive"

    def test_array_of_references(self):
        model = build_model({}, {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}})
        assert model.kind == "array"
        assert model.type == "Pet"
        assert model.link is None

    def test_array_without_items(self):
        model = build_model({}, {"type": "array"})
        assert model.kind == "array"
        assert model.type == "any"
        assert model.link.type == "any"

    def test_nested_array(self):
        model = build_model({}, {
            "type": "array",
            "items": {"type": "array", "items": {"type": "number"}},
        })
        assert model.link.kind == "array"
        assert model.link.link.type == "number"

    @pytest.mark.parametrize("keyword,kind", [
        ("oneOf", "one-of"),
        ("anyOf", "any-of"),
        ("allOf", "all-of"),
    ])
    def test_composite(self, keyword, kind):
        model = build_model({}, {keyword: [{"type": "string"}, {"type": "integer"}]}, "Either")
        assert model.kind == kind
        assert model.type == "Either"
        assert [p.type for p in model.properties] == ["string", "integer"]
        assert all(p.name == "" for p in model.properties)
        assert model.is_composite

    def test_anonymous_composite(self):
        model = build_model({}, {"oneOf": [{"type": "string"}]})
        assert model.type == "object"

    def test_not_schema(self):
        model = build_model({}, {"not": {"type": "string"}})
        assert model.is_not_schema

    def test_hoisted(self):
        model = build_model({}, {"type": "object", "properties": {}, "x-aws-nx-hoisted": True}, "Inline")
        assert model.is_hoisted


class TestBuildReference:
    SPEC = make_spec({
        "Pet": {"type": "object", "description": "A pet", "properties": {"name": {"type": "string"}}},
        "Status": {"type": "string", "enum": ["on", "off"]},
        "Hoisted": {"type": "object", "properties": {}, "x-aws-nx-hoisted": True},
    })

    def test_reference(self):
        model = build_model(self.SPEC, {"$ref": "#/components/schemas/Pet"}, "pet")
        assert model.kind == "reference"
        assert model.type == "Pet"
        assert model.ref == "Pet"
        assert model.name == "pet"
        assert model.description == "A pet"
        assert model.properties == []

    def test_enum_reference(self):
        model = build_model(self.SPEC, {"$ref": "#/components/schemas/Status"})
        assert model.kind == "enum"
        assert model.type == "Status"
        assert model.ref == "Status"

    def test_sibling_overrides(self):
        model = build_model(self.SPEC, {
            "$ref": "#/components/schemas/Pet",
            "nullable": True,
            "description": "The owner's pet",
            "x-extra": True,
        })
        assert model.is_nullable
        assert model.description == "The owner's pet"
        assert model.vendor_extensions == {"x-extra": True}

    def test_reference_is_not_hoisted(self):
        model = build_model(self.SPEC, {"$ref": "#/components/schemas/Hoisted"})
        assert not model.is_hoisted

    def test_parameter_class(self):
        model = build_model(
            self.SPEC,
            {"type": "string"},
            "id",
            cls=Parameter,
            location="path",
            prop="id",
            is_required=True,
        )
        assert isinstance(model, Parameter)
        assert model.location == "path"
        assert model.is_required
        assert model.type == "string"


class TestBuildComponentModels:
    def test_document_order(self):
        registry = build_component_models(make_spec({
            "B": {"type": "string"},
            "A": {"type": "object", "properties": {"b": {"$ref": "#/components/schemas/B"}}},
        }))
        assert [m.name for m in registry] == ["B", "A"]
        assert registry.get("A").properties[0].type == "B"

    def test_no_components(self):
        assert len(build_component_models({"openapi": "3.0.0"})) == 0
