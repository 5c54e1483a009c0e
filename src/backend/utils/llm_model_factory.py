from openai import AsyncOpenAI, AsyncAzureOpenAI
from src.backend.utils.settings import SETTINGS

GEMINI_OPENAI_BASE_URL = (
    "https://generativelanguage.googleapis.com/v1beta/openai/"
)


class LLMClientFactory:
    """Factory class for creating async chat clients based on configuration."""

    @staticmethod
    def create_client(config):
        """Create a client instance based on configuration.

        Args:
            config: Configuration mapping with at least `provider`

        Returns:
            An async client exposing the chat completions API
        """
        provider_type = config.get('provider', 'openai')

        if provider_type == 'openai':
            return AsyncOpenAI(api_key=SETTINGS.OPENAI_API_KEY)

        elif provider_type == 'azure':
            return AsyncAzureOpenAI(
                azure_endpoint=SETTINGS.AZURE_ENDPOINT,
                api_version=config.get('api_version', '2024-09-01-preview'),
                api_key=SETTINGS.AZURE_API_KEY,
            )
        # gemini, through its OpenAI-compatible endpoint
        elif provider_type == 'gemini':
            return AsyncOpenAI(
                api_key=SETTINGS.GEMINI_API_KEY,
                base_url=config.get('base_url', GEMINI_OPENAI_BASE_URL),
            )

        else:
            raise ValueError(f"Unsupported provider type: {provider_type}")
