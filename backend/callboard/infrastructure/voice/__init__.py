"""
Voice provider implementations
"""
from callboard.infrastructure.voice.factory import VoiceProviderFactory
from callboard.infrastructure.voice.vapi_provider import VapiProvider

VoiceProviderFactory.register("vapi", VapiProvider)

__all__ = ["VoiceProviderFactory", "VapiProvider"]
