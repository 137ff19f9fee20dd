# Django adapter: full Django app for the math tutor admin console.
# Public API: import ActiveLLMConfigResolver from here or from
# .services.config_resolver.
# Lazy import so that importing this package does not load Django models before
# django.setup() / apps are ready (avoids AppRegistryNotReady).

__all__ = ["ActiveLLMConfigResolver"]


def __getattr__(name):
    if name == "ActiveLLMConfigResolver":
        from .services.config_resolver import ActiveLLMConfigResolver
        return ActiveLLMConfigResolver
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
