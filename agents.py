"""
Model clients for the trial personas
Opaque complete(system_prompt, messages) -> text calls over OpenAI or LangChain
"""

import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import structlog
from dotenv import load_dotenv
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from openai import OpenAI, OpenAIError

from config import GameConfig, ModelSettings
from schemas import ChatTurn

load_dotenv()

logger = structlog.get_logger(__name__)

DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"


class TransientModelFailure(Exception):
    """The model call failed or returned nothing usable. Safe to retry."""


class ModelClient(ABC):
    """Blocking chat-completion call. Run it off the cooperative context."""

    def __init__(self, settings: Optional[ModelSettings] = None):
        self.settings = settings or ModelSettings()

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        messages: List[ChatTurn],
        settings: Optional[ModelSettings] = None,
    ) -> str:
        """Return the model's reply or raise TransientModelFailure."""


class OpenAIChatClient(ModelClient):
    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[ModelSettings] = None,
        client: Optional[Any] = None,
    ):
        super().__init__(settings)
        if client is None:
            api_key = api_key or os.getenv("openai") or os.getenv("OPENAI_API_KEY")
            client = OpenAI(api_key=api_key)
        self.client = client

    def complete(
        self,
        system_prompt: str,
        messages: List[ChatTurn],
        settings: Optional[ModelSettings] = None,
    ) -> str:
        settings = settings or self.settings
        payload = [{"role": "system", "content": system_prompt}]
        payload.extend({"role": m.role, "content": m.content} for m in messages)

        request: Dict[str, Any] = {
            "model": settings.model,
            "messages": payload,
            "max_tokens": settings.max_tokens,
            "temperature": settings.temperature,
            "n": 1,
        }
        if settings.top_p is not None:
            request["top_p"] = settings.top_p

        try:
            response = self.client.chat.completions.create(**request)
        except OpenAIError as e:
            logger.warning("model_call_failed", model=settings.model, error=str(e))
            raise TransientModelFailure(f"API call failed: {e}") from e

        if not response.choices:
            logger.warning("model_returned_no_choices", model=settings.model)
            raise TransientModelFailure("No choices returned from model")

        content = response.choices[0].message.content
        if content is None or not content.strip():
            raise TransientModelFailure("Empty response from model")
        return content.strip()


class LangChainChatClient(ModelClient):
    """Same contract over LangChain chat models (OpenAI or Anthropic)."""

    def __init__(
        self,
        llm_provider: str = "openai",
        settings: Optional[ModelSettings] = None,
        llm: Optional[Any] = None,
    ):
        super().__init__(settings)
        if llm_provider not in ("openai", "anthropic"):
            raise ValueError(f"Unsupported provider: {llm_provider}")
        self.llm_provider = llm_provider
        self._llms: Dict[ModelSettings, Any] = {}
        if llm is not None:
            self._llms[self.settings] = llm

    def _get_llm(self, settings: ModelSettings):
        if settings in self._llms:
            return self._llms[settings]

        if self.llm_provider == "openai":
            from langchain_openai import ChatOpenAI

            llm = ChatOpenAI(
                model=settings.model,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
                top_p=settings.top_p,
            )
        else:
            from langchain_anthropic import ChatAnthropic

            model = settings.model if settings.model.startswith("claude") else DEFAULT_ANTHROPIC_MODEL
            llm = ChatAnthropic(
                model=model,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )

        self._llms[settings] = llm
        return llm

    def _to_langchain(self, system_prompt: str, messages: List[ChatTurn]) -> List[BaseMessage]:
        converted: List[BaseMessage] = [SystemMessage(content=system_prompt)]
        for m in messages:
            if m.role == "assistant":
                converted.append(AIMessage(content=m.content))
            elif m.role == "system" and self.llm_provider == "openai":
                converted.append(SystemMessage(content=m.content))
            else:
                # Anthropic only accepts a leading system message
                converted.append(HumanMessage(content=m.content))
        return converted

    def complete(
        self,
        system_prompt: str,
        messages: List[ChatTurn],
        settings: Optional[ModelSettings] = None,
    ) -> str:
        settings = settings or self.settings
        llm = self._get_llm(settings)
        try:
            response = llm.invoke(self._to_langchain(system_prompt, messages))
        except Exception as e:
            logger.warning("model_call_failed", provider=self.llm_provider, error=str(e))
            raise TransientModelFailure(f"API call failed: {e}") from e

        content = response.content
        if isinstance(content, list):
            content = "".join(
                block.get("text", "") if isinstance(block, dict) else str(block) for block in content
            )
        if not content or not content.strip():
            raise TransientModelFailure("Empty response from model")
        return content.strip()


def create_model_client(config: GameConfig) -> ModelClient:
    """Pick the model client for the configured provider."""
    provider = config.llm_provider
    if provider == "openai":
        return OpenAIChatClient(api_key=config.api_key, settings=config.chat_settings)
    if provider == "langchain-openai":
        return LangChainChatClient("openai", settings=config.chat_settings)
    if provider == "anthropic":
        return LangChainChatClient("anthropic", settings=config.chat_settings)
    raise ValueError(f"Unsupported provider: {provider}")
