"""
Provider registry.

Maps provider identifiers to adapter factories so new backends can be added
without touching the generation service.
"""

from typing import Callable

from loguru import logger

from filler.providers.base import LLMAdapter


AdapterFactory = Callable[[], LLMAdapter]


class ProviderRegistry:
    """Registry of adapter factories keyed by provider identifier."""
    
    def __init__(self):
        self._factories: dict[str, AdapterFactory] = {}
    
    def register(self, name: str, factory: AdapterFactory) -> None:
        """Register (or replace) the factory for a provider."""
        key = name.lower()
        if key in self._factories:
            logger.debug(f"Replacing adapter factory for provider: {key}")
        self._factories[key] = factory
    
    def unregister(self, name: str) -> bool:
        """Remove a provider. Returns True if it was registered."""
        return self._factories.pop(name.lower(), None) is not None
    
    def provider(self, name: str) -> Callable[[AdapterFactory], AdapterFactory]:
        """Decorator form of register()."""
        def decorator(factory: AdapterFactory) -> AdapterFactory:
            self.register(name, factory)
            return factory
        return decorator
    
    def create(self, name: str | None) -> LLMAdapter | None:
        """
        Build a fresh adapter for a provider.
        
        Returns:
            The adapter, or None if the provider is unknown.
        """
        if not name:
            return None
        factory = self._factories.get(name.lower())
        if factory is None:
            return None
        return factory()
    
    def is_registered(self, name: str) -> bool:
        return name.lower() in self._factories
    
    def names(self) -> list[str]:
        """Registered provider identifiers, in registration order."""
        return list(self._factories.keys())


def _create_default_registry() -> ProviderRegistry:
    from filler.providers.litellm_provider import LiteLLMAdapter
    from filler.providers.lmstudio import LMStudioAdapter
    from filler.providers.openrouter import OpenRouterAdapter
    
    registry = ProviderRegistry()
    registry.register(OpenRouterAdapter.provider_type, OpenRouterAdapter)
    registry.register(LMStudioAdapter.provider_type, LMStudioAdapter)
    registry.register(LiteLLMAdapter.provider_type, LiteLLMAdapter)
    return registry


# Global registry instance
_registry: ProviderRegistry | None = None


def get_provider_registry() -> ProviderRegistry:
    """Get the global provider registry instance."""
    global _registry
    if _registry is None:
        _registry = _create_default_registry()
    return _registry


def register_adapter(name: str, factory: AdapterFactory) -> None:
    """Register an adapter factory on the global registry."""
    get_provider_registry().register(name, factory)
