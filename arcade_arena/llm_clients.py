# arcade_arena/llm_clients.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# API keys usually come from a local .env file.
load_dotenv()

# Environment variables checked, in order, for each provider's API key.
API_KEY_ENV: Dict[str, List[str]] = {
    "gemini": ["GEMINI_API_KEY", "GOOGLE_API_KEY"],
    "openai": ["OPENAI_API_KEY"],
    "anthropic": ["ANTHROPIC_API_KEY"],
    "grok": ["XAI_API_KEY"],
}
PROVIDERS = set(API_KEY_ENV)

XAI_BASE_URL = "https://api.x.ai/v1"


@dataclass(frozen=True)
class ModelSpec:
    """A `'<provider>:<model_name>'` string such as ``gemini:gemini-2.0-flash``."""
    provider: str
    model: str

    @classmethod
    def parse(cls, raw: str) -> "ModelSpec":
        provider, sep, model = raw.partition(":")
        provider, model = provider.strip().lower(), model.strip()
        if not sep or not model:
            raise ValueError(f"Model string {raw!r} must look like '<provider>:<model_name>'")
        if provider not in PROVIDERS:
            raise ValueError(
                f"Unknown provider {provider!r}; expected one of {', '.join(sorted(PROVIDERS))}"
            )
        return cls(provider=provider, model=model)

    def __str__(self) -> str:
        return f"{self.provider}:{self.model}"

    @property
    def label(self) -> str:
        return str(self)


def _key_from_env(provider: str) -> Optional[str]:
    for name in API_KEY_ENV[provider]:
        value = os.getenv(name)
        if value:
            return value
    return None


class LLMRouter:
    """
    Short plain-text completions from one of four providers.

    SDK clients are created on first use per provider, so only the SDK for the
    provider actually asked for has to be importable. Provider errors are not
    caught here; :class:`~arcade_arena.advisor.StrategyAdvisor` decides what a
    failure means.
    """

    def __init__(
        self,
        *,
        api_keys: Optional[Dict[str, str]] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 120,
    ) -> None:
        self.api_keys = {p: (api_keys or {}).get(p) or _key_from_env(p) for p in PROVIDERS}
        self.temperature = float(temperature)
        self.max_output_tokens = int(max_output_tokens)
        self._clients: Dict[str, Any] = {}

    def complete(
        self,
        model_spec: ModelSpec,
        *,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        max_tokens = max_output_tokens or self.max_output_tokens
        temp = self.temperature if temperature is None else float(temperature)
        logger.debug("Requesting %s (max_tokens=%d, temperature=%.2f)", model_spec, max_tokens, temp)

        handler = getattr(self, f"_complete_{model_spec.provider}", None)
        if handler is None:
            raise ValueError(f"Unsupported provider: {model_spec.provider}")
        return handler(model_spec.model, prompt, system_prompt, max_tokens, temp)

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def _client(self, provider: str) -> Any:
        client = self._clients.get(provider)
        if client is None:
            client = self._clients[provider] = self._build_client(provider)
        return client

    def _build_client(self, provider: str) -> Any:
        key = self.api_keys.get(provider)
        if provider == "gemini":
            from google import genai

            return genai.Client(api_key=key) if key else genai.Client()
        if provider == "anthropic":
            import anthropic

            return anthropic.Anthropic(api_key=key)

        from openai import OpenAI

        if provider == "grok":
            if not key:
                raise RuntimeError("XAI_API_KEY must be set to use provider 'grok'")
            return OpenAI(api_key=key, base_url=XAI_BASE_URL)
        return OpenAI(api_key=key)

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def _complete_gemini(self, model, prompt, system_prompt, max_tokens, temperature) -> str:
        from google.genai import types

        response = self._client("gemini").models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt or None,
                max_output_tokens=max_tokens,
                temperature=temperature,
            ),
        )
        text = getattr(response, "text", None)
        return text if isinstance(text, str) else ""

    def _complete_openai(self, model, prompt, system_prompt, max_tokens, temperature) -> str:
        request: Dict[str, Any] = {
            "model": model,
            "input": prompt,
            "max_output_tokens": max_tokens,
            "temperature": temperature,
        }
        if system_prompt:
            request["instructions"] = system_prompt
        client = self._client("openai")
        try:
            response = client.responses.create(**request)
        except Exception as exc:  # noqa: BLE001
            # Reasoning models reject sampling parameters; retry once without.
            if "temperature" not in str(exc).lower():
                raise
            logger.info("%s rejected temperature; retrying without it", model)
            request.pop("temperature")
            response = client.responses.create(**request)
        text = getattr(response, "output_text", None)
        return text if isinstance(text, str) else ""

    def _complete_anthropic(self, model, prompt, system_prompt, max_tokens, temperature) -> str:
        request: Dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            request["system"] = system_prompt
        message = self._client("anthropic").messages.create(**request)
        return "".join(getattr(block, "text", "") or "" for block in message.content)

    def _complete_grok(self, model, prompt, system_prompt, max_tokens, temperature) -> str:
        messages = [{"role": "user", "content": prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})
        completion = self._client("grok").chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        content = completion.choices[0].message.content
        return content if isinstance(content, str) else ""
