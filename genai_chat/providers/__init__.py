from ..types import ChatBackend, ChatClientError, GenaiChatConfig, LLMProviderError
from .generic_openai import GenericOpenAIProvider, ProviderBackend
from .proxy_client import MODEL_INFO_COMMAND, ProxyChatClient


def build_backend(config: GenaiChatConfig) -> ChatBackend:
    """Proxy client when ``chat.server_url`` is set, direct LLM access otherwise."""
    if config.chat.server_url:
        return ProxyChatClient(config.chat.server_url, timeout=config.llm.timeout)
    return ProviderBackend(
        GenericOpenAIProvider.from_config(config.llm), config.llm.system_prompt
    )


__all__ = [
    "ChatClientError",
    "GenericOpenAIProvider",
    "LLMProviderError",
    "MODEL_INFO_COMMAND",
    "ProviderBackend",
    "ProxyChatClient",
    "build_backend",
]
