from __future__ import annotations

import json
import logging
import re
from pathlib import PurePosixPath
from typing import Any, List, Optional

from staxchange.ai.clients import BaseLLMClient
from staxchange.ai.prompts import build_conversion_messages
from staxchange.conversion.models import Batch, ConvertedFile, TargetSpec
from staxchange.detection.selector import normalize_path

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r'```[a-zA-Z0-9_\-]*\n([\s\S]*?)```', re.MULTILINE)


class BatchConversionError(RuntimeError):
  """Base class for failures that make a single batch unconvertible."""


class MalformedResponseError(BatchConversionError):
  """The model reply could not be parsed as JSON."""


class InvalidStructureError(BatchConversionError):
  """The reply parsed but is not shaped like ``{"files": [...]}``."""


class EmptyResultError(BatchConversionError):
  """No usable file entries survived validation."""


def extract_balanced_object(text: str) -> Optional[str]:
  """Returns the first balanced ``{...}`` span of ``text``.

  Braces inside JSON string literals are ignored. If the first candidate never
  closes, scanning restarts at the next opening brace.
  """
  start = text.find('{')
  while start != -1:
    depth = 0
    in_string = False
    escaped = False
    for position in range(start, len(text)):
      char = text[position]
      if in_string:
        if escaped:
          escaped = False
        elif char == '\\':
          escaped = True
        elif char == '"':
          in_string = False
        continue
      if char == '"':
        in_string = True
      elif char == '{':
        depth += 1
      elif char == '}':
        depth -= 1
        if depth == 0:
          return text[start:position + 1]
    start = text.find('{', start + 1)
  return None


def parse_model_response(text: str) -> Any:
  cleaned = (text or '').strip()
  if not cleaned:
    raise MalformedResponseError('AI returned an empty response')
  try:
    return json.loads(cleaned)
  except json.JSONDecodeError:
    pass

  candidates: List[str] = [match.strip() for match in FENCE_PATTERN.findall(cleaned)]
  balanced = extract_balanced_object(cleaned)
  if balanced:
    candidates.append(balanced)
  if not candidates:
    raise MalformedResponseError('AI did not return JSON format')

  last_error: Optional[Exception] = None
  for candidate in candidates:
    try:
      return json.loads(candidate)
    except json.JSONDecodeError as exc:
      last_error = exc
  raise MalformedResponseError(f'AI returned invalid JSON format: {last_error}')


def _is_usable_path(path: str) -> bool:
  if not path:
    return False
  parts = PurePosixPath(path).parts
  return bool(parts) and '..' not in parts and PurePosixPath(path).name not in ('', '.')


def _resolve_original_path(declared: Any, output_path: str, batch: Batch) -> str:
  inputs = batch.paths
  if isinstance(declared, str):
    normalized = normalize_path(declared)
    if normalized in inputs:
      return normalized
  if output_path in inputs:
    return output_path
  output_stem = str(PurePosixPath(output_path).with_suffix(''))
  for candidate in inputs:
    if str(PurePosixPath(candidate).with_suffix('')) == output_stem:
      return candidate
  output_name = PurePosixPath(output_stem).name.lower()
  for candidate in inputs:
    if PurePosixPath(candidate).stem.lower() == output_name:
      return candidate
  return inputs[0]


def validate_files(payload: Any, batch: Batch) -> List[ConvertedFile]:
  if not isinstance(payload, dict) or not isinstance(payload.get('files'), list):
    raise InvalidStructureError('AI returned invalid response structure')

  valid: List[ConvertedFile] = []
  for position, entry in enumerate(payload['files']):
    if not isinstance(entry, dict):
      logger.warning('Skipping non-object file entry %s in batch %s', position, batch.index)
      continue
    path = entry.get('path')
    content = entry.get('content')
    if not isinstance(path, str) or not isinstance(content, str):
      logger.warning('Skipping invalid file entry %s in batch %s: %s', position, batch.index, sorted(entry.keys()))
      continue
    normalized = normalize_path(path)
    if not _is_usable_path(normalized):
      logger.warning('Skipping file entry %s in batch %s with unusable path %r', position, batch.index, path)
      continue
    valid.append(
      ConvertedFile(
        path=normalized,
        content=content,
        original_path=_resolve_original_path(entry.get('originalPath'), normalized, batch),
        is_fallback=False
      )
    )

  if not valid:
    raise EmptyResultError('No valid converted files in AI response')
  return valid


class ConversionEngine:
  """Turns one batch into converted files through a single model call, or raises."""

  def __init__(
    self,
    client: BaseLLMClient,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None
  ) -> None:
    self.client = client
    self.model = model
    self.temperature = temperature
    self.max_tokens = max_tokens

  async def convert_batch(self, batch: Batch, target: TargetSpec) -> List[ConvertedFile]:
    logger.info(
      'Converting batch %s (%s files, %s chars) to %s',
      batch.index,
      len(batch),
      batch.size,
      target.describe()
    )
    messages = build_conversion_messages(batch, target)
    result = await self.client.complete(
      messages,
      model=self.model,
      temperature=self.temperature,
      max_tokens=self.max_tokens
    )
    logger.debug('Batch %s response preview: %s', batch.index, result.output_text[:200])

    payload = parse_model_response(result.output_text)
    files = validate_files(payload, batch)
    if len(files) < len(batch):
      logger.warning(
        'Batch %s returned %s files for %s inputs; some files may have been merged or omitted',
        batch.index,
        len(files),
        len(batch)
      )
    logger.info('Batch %s converted into %s files', batch.index, len(files))
    return files

  async def close(self) -> None:
    try:
      await self.client.aclose()
    except Exception:  # pragma: no cover - driver shutdown
      logger.debug('Failed to close client cleanly', exc_info=True)
