"""Text Generation Gateway - one contract over several LLM providers.

Note: Import `app` directly from `textgen_gateway.main` to avoid circular imports.
"""

__version__ = "1.0.0"

__all__ = ["main", "api", "core", "models", "providers", "services"]
