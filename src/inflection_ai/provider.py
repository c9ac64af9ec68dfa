"""Provider construction."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from inflection_ai.chat_model import InflectionChatLanguageModel
from inflection_ai.config import ChatConfig, ProviderSettings
from inflection_ai.errors import NoSuchModelError

if TYPE_CHECKING:
    from collections.abc import Mapping

    import httpx

    from inflection_ai.config import ChatModelId, ChatSettings

PROVIDER_NAME = "inflection.chat"


class InflectionProvider:
    """Factory for Inflection chat models.

    Every model made by one provider shares the same immutable ``ChatConfig``.

    Example:
        provider = create_inflection(api_key="...")
        model = provider("inflection_3_pi")
    """

    def __init__(
        self,
        settings: ProviderSettings,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Freeze construction state into a shared ChatConfig."""
        self.settings = settings
        self._config = ChatConfig(
            provider=PROVIDER_NAME,
            base_url=settings.base_url or "",
            headers=settings.request_headers,
            http_client=http_client,
            timeout_s=settings.timeout_s,
        )

    @property
    def config(self) -> ChatConfig:
        return self._config

    def __call__(
        self, model_id: ChatModelId, settings: ChatSettings | None = None
    ) -> InflectionChatLanguageModel:
        return self.chat(model_id, settings)

    def chat(
        self, model_id: ChatModelId, settings: ChatSettings | None = None
    ) -> InflectionChatLanguageModel:
        """Create a chat model for *model_id*."""
        return InflectionChatLanguageModel(model_id, settings, self._config)

    language_model = chat

    def text_embedding_model(self, model_id: str) -> NoReturn:
        """Raise: Inflection offers no embedding models."""
        raise NoSuchModelError(model_id, "textEmbeddingModel")


def create_inflection(
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    headers: Mapping[str, str] | None = None,
    http_client: httpx.AsyncClient | None = None,
    timeout_s: float = 60.0,
) -> InflectionProvider:
    """Create an Inflection provider.

    Args:
        api_key: Falls back to ``INFLECTION_API_KEY`` at call time.
        base_url: Falls back to ``INFLECTION_BASE_URL`` or the public endpoint.
        headers: Default headers sent with every request.
        http_client: Shared client; when omitted each call opens its own.
        timeout_s: Timeout for calls made with an internal client.
    """
    return InflectionProvider(
        ProviderSettings(
            api_key=api_key,
            base_url=base_url,
            headers=dict(headers or {}),
            timeout_s=timeout_s,
        ),
        http_client=http_client,
    )


#: Default provider; reads its API key from the environment on first call.
inflection = create_inflection()
