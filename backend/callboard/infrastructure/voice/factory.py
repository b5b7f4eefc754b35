"""
Voice Provider Factory
"""
from typing import Dict, Type

from callboard.domain.interfaces.voice_provider import VoiceProvider


class VoiceProviderFactory:
    """Factory for creating voice provider instances"""

    _providers: Dict[str, Type[VoiceProvider]] = {}

    @classmethod
    def create(cls, provider_name: str, **kwargs) -> VoiceProvider:
        """Create voice provider instance"""
        if provider_name not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "None"
            raise ValueError(f"Unknown voice provider: {provider_name}. Available: {available}")

        provider_class = cls._providers[provider_name]
        return provider_class(**kwargs)

    @classmethod
    def register(cls, name: str, provider_class: Type[VoiceProvider]) -> None:
        """Register a provider"""
        cls._providers[name] = provider_class

    @classmethod
    def list_providers(cls) -> list[str]:
        """List available providers"""
        return list(cls._providers.keys())
