import copy
import json

import pytest

from codegen_tools.open_api.codegen_data import build_openapi_codegen_data
from codegen_tools.open_api.ir import CodeGenOptions
from codegen_tools.shared.errors import (
    AmbiguousCompositeError,
    AmbiguousResponseError,
    DuplicateOperationIdError,
    UnsupportedSpecError,
)


def make_spec(paths=None, schemas=None, **extra):
    return {
        "openapi": "3.0.3",
        "info": {"title": "pet store", "version": "1.0.0"},
        "paths": paths or {},
        "components": {"schemas": schemas or {}},
        **extra,
    }


def json_response(schema, description="ok"):
    return {"description": description, "content": {"application/json": {"schema": schema}}}


def op(operation_id, tags=None, **extra):
    operation = {"operationId": operation_id, "responses": {"200": {"description": "ok"}}, **extra}
    if tags:
        operation["tags"] = tags
    return operation


PETS_SPEC = make_spec(
    paths={
        "/pets": {
            "get": {
                "operationId": "listPets",
                "tags": ["pets"],
                "parameters": [
                    {"name": "cursor", "in": "query", "schema": {"type": "string"}},
                    {"name": "id", "in": "query", "schema": {"$ref": "#/components/schemas/Id"}},
                ],
                "responses": {
                    "200": json_response({"type": "array", "items": {"$ref": "#/components/schemas/Pet"}}),
                },
            },
            "post": {
                "operationId": "createPet",
                "tags": ["pets", "admin"],
                "requestBody": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}}},
                "responses": {"201": json_response({"$ref": "#/components/schemas/Pet"})},
            },
        },
        "/health": {"get": op("health")},
    },
    schemas={
        "Id": {"type": "string", "format": "uuid"},
        "Tag": {"type": "string", "enum": ["cute", "fluffy"]},
        "Owner": {"type": "object", "properties": {"name": {"type": "string"}}},
        "Pet": {
            "type": "object",
            "required": ["id"],
            "properties": {
                "id": {"$ref": "#/components/schemas/Id"},
                "owner": {"$ref": "#/components/schemas/Owner"},
                "tags": {"type": "array", "items": {"$ref": "#/components/schemas/Tag"}},
                "address": {"type": "object", "properties": {"street": {"type": "string"}}},
            },
        },
    },
    **{"x-generator": {"client": "typescript"}},
)


class TestScenarios:
    def test_enum_request_and_response(self):
        spec = make_spec(paths={"/status": {"post": {
            "operationId": "updateStatus",
            "requestBody": {"content": {"application/json": {"schema": {
                "type": "string",
                "enum": ["pending", "in_progress", "completed", "failed"],
            }}}},
            "responses": {"200": json_response({"type": "string", "enum": ["accepted", "rejected"]})},
        }}})
        data = build_openapi_codegen_data(spec)

        assert len(data.all_operations) == 1
        operation = data.all_operations[0]
        assert operation.name == "updateStatus"
        assert len(operation.parameters) == 1
        body = operation.parameters[0]
        assert body.kind == "enum"
        assert body.location == "body"
        assert operation.explicit_request_body_parameter is None
        assert len(operation.responses) == 1
        assert operation.responses[0].kind == "enum"
        assert [m.name for m in data.models] == ["UpdateStatus200Response", "UpdateStatusRequestContent"]
        assert data.models[1].enum == ["pending", "in_progress", "completed", "failed"]

    def test_same_operation_id_under_different_tags(self):
        spec = make_spec(paths={
            "/users": {"get": op("list", ["users"])},
            "/items": {"get": op("list", ["items"])},
        })
        data = build_openapi_codegen_data(spec)
        assert sorted(o.unique_name for o in data.all_operations) == ["items.list", "users.list"]

    def test_duplicate_untagged_operation_id(self):
        spec = make_spec(paths={"/a": {"get": op("myOp")}, "/b": {"get": op("myOp")}})
        with pytest.raises(DuplicateOperationIdError):
            build_openapi_codegen_data(spec)

    def test_ambiguous_composite(self):
        spec = make_spec(schemas={
            "Pet": {"type": "object", "properties": {"name": {"type": "string"}}},
            "Owner": {"type": "object", "properties": {"id": {"type": "string"}}},
            "Choice": {"oneOf": [
                {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
                {"type": "array", "items": {"$ref": "#/components/schemas/Owner"}},
            ]},
        })
        with pytest.raises(AmbiguousCompositeError):
            build_openapi_codegen_data(spec)

    def test_ambiguous_response(self):
        spec = make_spec(paths={"/thing": {"get": {
            "operationId": "getThing",
            "responses": {"200": json_response({"anyOf": [{"type": "string"}, {"type": "integer"}]})},
        }}})
        with pytest.raises(AmbiguousResponseError, match='"GET /thing"'):
            build_openapi_codegen_data(spec)

    def test_recursive_schema(self):
        spec = make_spec(schemas={"TreeNode": {
            "type": "object",
            "properties": {
                "value": {"type": "string"},
                "children": {"type": "array", "items": {"$ref": "#/components/schemas/TreeNode"}},
            },
        }})
        data = build_openapi_codegen_data(spec)
        tree = data.models[0]
        children = tree.properties[1]
        assert children.link is tree
        assert children.typescript_type == "Array<TreeNode>"
        assert tree.unique_imports == []

        serialised = data.to_dict()["models"][0]
        assert serialised["properties"][1]["link"] == {
            "name": "TreeNode", "kind": "reference", "type": "TreeNode", "recursive": True,
        }

    def test_unsupported_version(self):
        with pytest.raises(UnsupportedSpecError):
            build_openapi_codegen_data({"swagger": "2.0", "paths": {}})


@pytest.fixture(scope="module")
def data():
    return build_openapi_codegen_data(PETS_SPEC)


class TestBuildOpenApiCodegenData:
    def test_does_not_mutate_input(self):
        spec = copy.deepcopy(PETS_SPEC)
        build_openapi_codegen_data(spec)
        assert spec == PETS_SPEC

    def test_deterministic(self):
        first = build_openapi_codegen_data(PETS_SPEC).to_dict()
        second = build_openapi_codegen_data(PETS_SPEC).to_dict()
        assert first == second

    def test_models_sorted_and_unique(self, data):
        names = [m.name for m in data.models]
        assert names == sorted(names)
        assert len(names) == len(set(names))
        assert "Id" not in names
        assert {"Owner", "Pet", "PetAddress", "Tag"} <= set(names)
        assert "ListPets200Response" not in names
        assert "ListPetsRequestQueryParameters" in names

    def test_primitive_refs_inlined(self, data):
        pet = next(m for m in data.models if m.name == "Pet")
        id_property = pet.properties[0]
        assert id_property.kind == "primitive"
        assert id_property.type == "string"
        assert id_property.format == "uuid"
        assert id_property.is_required

    def test_hoisted_property(self, data):
        pet = next(m for m in data.models if m.name == "Pet")
        address = next(p for p in pet.properties if p.name == "address")
        assert address.ref == "PetAddress"
        assert next(m for m in data.models if m.name == "PetAddress").is_hoisted

    def test_unique_imports(self, data):
        pet = next(m for m in data.models if m.name == "Pet")
        assert pet.unique_imports == ["Owner", "PetAddress", "Tag"]

    def test_links_resolved(self, data):
        pet = next(m for m in data.models if m.name == "Pet")
        tags = next(p for p in pet.properties if p.name == "tags")
        assert tags.link is next(m for m in data.models if m.name == "Tag")
        list_pets = next(o for o in data.all_operations if o.unique_name == "listPets")
        assert list_pets.result.kind == "array"
        assert list_pets.result.link is pet

    def test_language_annotations(self, data):
        pet = next(m for m in data.models if m.name == "Pet")
        assert pet.name_snake_case == "pet"
        tags = next(p for p in pet.properties if p.name == "tags")
        assert tags.typescript_type == "Array<Tag>"
        assert tags.python_type == "List[Tag]"
        assert tags.python_name == "tags"

    def test_services(self, data):
        assert [s.name for s in data.services] == ["Default", "Admin", "Pets"]
        pets = data.services[2]
        assert [o.unique_name for o in pets.operations] == ["createPet", "listPets"]
        assert pets.model_imports == ["Pet"]

    def test_all_operations_deduplicated(self, data):
        assert [o.unique_name for o in data.all_operations] == ["health", "createPet", "listPets"]

    def test_operations_by_tag(self, data):
        assert {tag: [o.unique_name for o in ops] for tag, ops in data.operations_by_tag.items()} == {
            "admin": ["createPet"],
            "pets": ["createPet", "listPets"],
        }
        assert [o.unique_name for o in data.untagged_operations] == ["health"]

    def test_operation_details(self, data):
        list_pets = next(o for o in data.all_operations if o.unique_name == "listPets")
        assert list_pets.is_infinite_query
        assert list_pets.parameters[1].type == "string"
        assert list_pets.result.code == 200
        create_pet = next(o for o in data.all_operations if o.unique_name == "createPet")
        assert create_pet.is_mutation
        assert create_pet.parameters[0].ref == "Pet"

    def test_info_and_extensions(self, data):
        assert data.info == {"title": "pet store", "version": "1.0.0"}
        assert data.class_name == "PetStore"
        assert data.vendor_extensions == {"x-generator": {"client": "typescript"}}

    def test_to_dict(self, data):
        result = json.loads(json.dumps(data.to_dict()))
        assert set(result) == {
            "info", "className", "models", "services", "allOperations",
            "operationsByTag", "untaggedOperations", "vendorExtensions",
        }
        assert result["operationsByTag"] == {"admin": ["createPet"], "pets": ["createPet", "listPets"]}
        list_pets = next(o for o in result["allOperations"] if o["uniqueName"] == "listPets")
        assert list_pets["infiniteQueryCursorProperty"] == "cursor"
        assert list_pets["parameters"][0]["in"] == "query"
        assert list_pets["responses"][0]["code"] == 200

    def test_custom_options(self):
        data = build_openapi_codegen_data(PETS_SPEC, CodeGenOptions(default_service_name="Core"))
        assert data.services[0].name == "Core"


class TestOpenApi31:
    def test_nullable_types(self):
        spec = make_spec(schemas={"Pet": {
            "type": "object",
            "properties": {
                "name": {"type": ["string", "null"]},
                "owner": {"anyOf": [{"$ref": "#/components/schemas/Owner"}, {"type": "null"}]},
            },
        }, "Owner": {"type": "object", "properties": {"id": {"type": "string"}}}})
        spec["openapi"] = "3.1.0"
        data = build_openapi_codegen_data(spec)
        pet = next(m for m in data.models if m.name == "Pet")
        name, owner = pet.properties
        assert name.type == "string"
        assert name.is_nullable
        assert owner.ref == "Owner"
        assert owner.is_nullable
