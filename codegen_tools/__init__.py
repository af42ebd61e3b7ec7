"""Code generation tools for OpenAPI described services."""
