"""
generation.py — Generation Client implementations
==================================================
The agent pipeline only depends on the GenerationClient protocol:

    generate(prompt: str) -> str

Two implementations are provided:

  AzureOpenAIGenerationClient   Live backend.  Azure OpenAI when
                                AZURE_OPENAI_ENDPOINT + KEY are set, otherwise
                                plain OpenAI when OPENAI_API_KEY is set.
  MockGenerationClient          Deterministic test double / offline backend:
                                scripted replies, records every prompt.

``make_generation_client`` picks one from Settings (live vs. mock mode).
``call_generation`` is the single boundary where backend exceptions are
converted into UnexpectedFailure.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Iterable, Optional, Protocol, Union, runtime_checkable

from openai import AzureOpenAI, OpenAI

from academy_agents.config import Settings, get_settings
from academy_agents.errors import UnexpectedFailure
from academy_agents.models import AgentConfiguration

logger = logging.getLogger(__name__)


@runtime_checkable
class GenerationClient(Protocol):
    def generate(self, prompt: str) -> str:
        ...


GenerateFn = Callable[[str], str]


def call_generation(generate: GenerateFn, prompt: str) -> str:
    """Invoke the backend; any failure surfaces as UnexpectedFailure, unretried."""
    try:
        return generate(prompt)
    except UnexpectedFailure:
        raise
    except Exception as exc:
        logger.error("Generation backend failed: %s", exc)
        raise UnexpectedFailure(f"Generation backend failed: {exc}", exc) from exc


# ─── Live backend ────────────────────────────────────────────────────────────

class AzureOpenAIGenerationClient:
    """
    Chat-completions backend.

    The system prompt is already part of the composed prompt, so each call
    sends a single user message.  JSON mode is not requested: the parser is
    built to cope with whatever text comes back.
    """

    def __init__(
        self,
        configuration: AgentConfiguration,
        settings: Optional[Settings] = None,
        client: Any = None,
    ) -> None:
        self._configuration = configuration
        self._settings      = settings or get_settings()
        cfg = self._settings.openai

        if client is not None:
            self._client = client
            self._model  = configuration.model
        elif cfg.azure_configured:
            self._client = AzureOpenAI(
                azure_endpoint=cfg.endpoint,
                api_key=cfg.api_key,
                api_version=cfg.api_version,
            )
            # Azure routes by deployment name, not model family.
            self._model = cfg.deployment
        elif cfg.openai_configured:
            self._client = OpenAI(api_key=cfg.openai_api_key)
            self._model  = configuration.model
        else:
            raise EnvironmentError(
                "Neither Azure OpenAI nor OpenAI is configured. "
                "Set AZURE_OPENAI_ENDPOINT + AZURE_OPENAI_API_KEY or OPENAI_API_KEY."
            )

    @property
    def model(self) -> str:
        return self._model

    def generate(self, prompt: str) -> str:
        logger.debug("Requesting completion from %s (%d prompt chars)", self._model, len(prompt))
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self._configuration.temperature,
            max_tokens=self._configuration.max_tokens,
        )
        return response.choices[0].message.content or ""


# ─── Test double / offline backend ──────────────────────────────────────────

Reply = Union[str, BaseException]


class MockGenerationClient:
    """
    Deterministic GenerationClient.

    *responses* is either a sequence of replies, returned in order with the
    last one repeating, or a callable ``prompt -> reply``.  A reply that is an
    exception instance is raised instead of returned.

    With ``record_prompts=True`` every prompt is kept in ``prompts`` for
    inspection; give each concurrent caller its own instance in that case.
    With ``record_prompts=False`` only a call counter is kept, so one
    instance can back a long-lived agent without growing.
    """

    def __init__(
        self,
        responses: Union[Iterable[Reply], Callable[[str], Reply]],
        record_prompts: bool = True,
    ) -> None:
        if callable(responses):
            self._responder: Optional[Callable[[str], Reply]] = responses
            self._replies: list[Reply] = []
        else:
            self._responder = None
            self._replies = list(responses)
            if not self._replies:
                raise ValueError("MockGenerationClient needs at least one response")
        self.record_prompts = record_prompts
        self.prompts: list[str] = []
        self._calls = 0
        self._lock  = threading.Lock()

    @property
    def call_count(self) -> int:
        return self._calls

    def generate(self, prompt: str) -> str:
        with self._lock:
            index = self._calls
            self._calls += 1
            if self.record_prompts:
                self.prompts.append(prompt)
        if self._responder is not None:
            reply = self._responder(prompt)
        else:
            reply = self._replies[min(index, len(self._replies) - 1)]
        if isinstance(reply, BaseException):
            raise reply
        return reply


def make_generation_client(
    configuration: AgentConfiguration,
    settings: Optional[Settings] = None,
    mock_payload: Optional[dict] = None,
) -> GenerationClient:
    """Live client in live mode, otherwise a non-recording mock replying with *mock_payload*."""
    settings = settings or get_settings()
    if settings.live_mode:
        return AzureOpenAIGenerationClient(configuration, settings)
    logger.info("Live generation not configured; using mock generation client")
    return MockGenerationClient(
        [json.dumps(mock_payload or {"message": "Mock response."})],
        record_prompts=False,
    )
