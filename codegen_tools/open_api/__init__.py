"""OpenAPI code generation data engine."""

from .builder import ModelRegistry, build_component_models, build_model
from .codegen_data import build_openapi_codegen_data
from .composites import ensure_composite_models, flatten_composite_model, is_primitive_array
from .identity import OperationIdentity, disambiguate_operations, iter_spec_operations
from .ir import (
    CodeGenData,
    CodeGenOptions,
    Model,
    Operation,
    Parameter,
    Response,
    Service,
)
from .languages import to_python_name, to_python_type, to_typescript_name, to_typescript_type
from .links import ensure_model_links, link_model
from .normalise import normalise_openapi_spec_for_codegen
from .operations import build_operations, build_parameter_models, build_services
from .refs import is_ref, resolve_if_ref, resolve_ref, split_ref

__all__ = [
    # Pipeline
    "build_openapi_codegen_data",
    "normalise_openapi_spec_for_codegen",
    "build_component_models",
    "build_model",
    "ensure_model_links",
    "link_model",
    "ensure_composite_models",
    "flatten_composite_model",
    "is_primitive_array",
    "disambiguate_operations",
    "iter_spec_operations",
    "build_operations",
    "build_parameter_models",
    "build_services",
    # Refs
    "is_ref",
    "resolve_if_ref",
    "resolve_ref",
    "split_ref",
    # Languages
    "to_python_name",
    "to_python_type",
    "to_typescript_name",
    "to_typescript_type",
    # Records
    "ModelRegistry",
    "OperationIdentity",
    "CodeGenData",
    "CodeGenOptions",
    "Model",
    "Operation",
    "Parameter",
    "Response",
    "Service",
]
