from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from staxchange.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ProviderError(RuntimeError):
  """Represents a provider specific failure."""


class ConfigurationError(RuntimeError):
  """Raised when the LLM provider cannot be used at all (e.g. no API key)."""


@dataclass
class ProviderResult:
  output_text: str
  model: str
  input_tokens: int = 0
  output_tokens: int = 0
  raw_response: Dict[str, object] = field(default_factory=dict)

  @property
  def total_tokens(self) -> int:
    return self.input_tokens + self.output_tokens


class BaseLLMClient:
  def __init__(self, config: Optional[Settings] = None) -> None:
    self.config = config or default_settings
    self.timeout = self.config.request_timeout_seconds
    self.max_attempts = max(1, self.config.ai_retry_attempts)
    self.backoff = max(0.0, self.config.ai_retry_backoff_seconds)

  async def complete(
    self,
    messages: List[Dict[str, str]],
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None
  ) -> ProviderResult:
    raise NotImplementedError

  async def aclose(self) -> None:
    return None


class OpenRouterClient(BaseLLMClient):
  """OpenAI-compatible chat completions against OpenRouter, one blocking call per request."""

  def __init__(
    self,
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
  ) -> None:
    super().__init__(config)
    if not self.config.openrouter_api_key:
      raise ConfigurationError('Missing OPENROUTER_API_KEY environment variable')
    self.base_url = self.config.openrouter_base_url.rstrip('/')
    self.model = self.config.openrouter_model
    self.headers = {
      'Authorization': f'Bearer {self.config.openrouter_api_key}',
      'Content-Type': 'application/json',
      'HTTP-Referer': self.config.openrouter_referer,
      'X-Title': self.config.openrouter_title
    }
    self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

  async def complete(
    self,
    messages: List[Dict[str, str]],
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None
  ) -> ProviderResult:
    payload: Dict[str, object] = {
      'model': model or self.model,
      'messages': messages,
      'temperature': self.config.ai_temperature if temperature is None else temperature,
      'max_tokens': max_tokens or self.config.ai_max_tokens,
      'stream': False
    }
    endpoint = f'{self.base_url}/chat/completions'
    attempt = 0

    while True:
      attempt += 1
      try:
        resp = await self._client.post(endpoint, headers=self.headers, json=payload)
        resp.raise_for_status()
        return self._build_result(resp.json(), str(payload['model']))
      except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status in RETRYABLE_STATUS_CODES and attempt < self.max_attempts:
          logger.warning('OpenRouter returned %s, retrying (attempt %s/%s)', status, attempt + 1, self.max_attempts)
          await asyncio.sleep(self.backoff * attempt)
          continue
        raise ProviderError(f'OpenRouter API error {status}: {exc.response.text}') from exc
      except httpx.HTTPError as exc:
        if attempt < self.max_attempts:
          logger.warning('OpenRouter request failed (%s), retrying (attempt %s/%s)', exc, attempt + 1, self.max_attempts)
          await asyncio.sleep(self.backoff * attempt)
          continue
        raise ProviderError(f'OpenRouter request failed after {attempt} attempts: {exc}') from exc
      except ValueError as exc:
        raise ProviderError(f'OpenRouter returned a non-JSON body: {exc}') from exc

  def _build_result(self, data: Dict[str, object], model: str) -> ProviderResult:
    choices = data.get('choices') if isinstance(data, dict) else None
    text = ''
    if isinstance(choices, list) and choices:
      message = choices[0].get('message') if isinstance(choices[0], dict) else None
      if isinstance(message, dict) and isinstance(message.get('content'), str):
        text = message['content']
    usage = data.get('usage') if isinstance(data, dict) else None
    usage = usage if isinstance(usage, dict) else {}
    return ProviderResult(
      output_text=text,
      model=str((data.get('model') if isinstance(data, dict) else None) or model),
      input_tokens=int(usage.get('prompt_tokens') or 0),
      output_tokens=int(usage.get('completion_tokens') or 0),
      raw_response={'usage': usage}
    )

  async def aclose(self) -> None:
    await self._client.aclose()
