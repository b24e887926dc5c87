# media_matching/reporter_matching/text_generation.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_groq import ChatGroq

from .config_loader import MatchingConfig

logger = logging.getLogger(__name__)


class GroqTextGenerator:
    """
    Short-completion client backed by Groq through LangChain.

    Clients are built lazily (ChatGroq needs GROQ_API_KEY at construction)
    and cached per output budget.
    """

    def __init__(self, config: MatchingConfig | None = None, prompt_name: str = "justification") -> None:
        self._cfg = config or MatchingConfig()
        self._prompt_name = prompt_name
        self._llm_cfg: Dict[str, Any] = self._cfg.get_llm_config()
        self._clients: Dict[int, ChatGroq] = {}

    @property
    def default_max_tokens(self) -> int:
        return int(self._llm_cfg.get("max_tokens", 150))

    def _build_llm(self, max_tokens: int) -> ChatGroq:
        model = self._llm_cfg.get("model", "llama-3.1-8b-instant")
        temperature = float(self._llm_cfg.get("temperature", 0.7))
        timeout = float(self._llm_cfg.get("request_timeout", 20))
        max_retries = int(self._llm_cfg.get("max_retries", 1))

        logger.debug(
            "Building Groq client with model=%s, temperature=%s, max_tokens=%d, timeout=%s",
            model,
            temperature,
            max_tokens,
            timeout,
        )

        return ChatGroq(
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
            max_retries=max_retries,
        )

    def _llm_for(self, max_tokens: int) -> ChatGroq:
        client = self._clients.get(max_tokens)
        if client is None:
            client = self._build_llm(max_tokens)
            self._clients[max_tokens] = client
        return client

    def _messages(self, prompt: str) -> List[Any]:
        return [
            SystemMessage(content=self._cfg.get_prompt(self._prompt_name)),
            HumanMessage(content=prompt),
        ]

    @staticmethod
    def _content(response: Any) -> str:
        content = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise ValueError("Text generation returned an empty or non-text response.")
        return content.strip()

    def complete(self, prompt: str, max_tokens: int) -> str:
        response = self._llm_for(int(max_tokens)).invoke(self._messages(prompt))
        return self._content(response)

    async def acomplete(self, prompt: str, max_tokens: int) -> str:
        response = await self._llm_for(int(max_tokens)).ainvoke(self._messages(prompt))
        return self._content(response)
