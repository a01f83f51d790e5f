from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Awaitable, Callable, List, Optional, Sequence

from staxchange.ai.clients import ConfigurationError
from staxchange.ai.engine import ConversionEngine
from staxchange.conversion.fallback import DEFAULT_EXCERPT_CHARS, generate_fallback_files
from staxchange.conversion.models import (
  Batch,
  BatchOutcome,
  BatchStatus,
  ConversionResult,
  ConversionSummary,
  ConversionWarnings,
  ConvertedFile,
  TargetSpec,
  ThrottlePolicy
)
from staxchange.conversion.planner import DEFAULT_SIZE_LIMIT, plan_batches

logger = logging.getLogger(__name__)

NO_FILES_MESSAGE = 'No code files found in repository'


class ConversionRunError(RuntimeError):
  """The run produced nothing usable; carries the per-batch outcomes."""

  def __init__(self, message: str, outcomes: Optional[List[BatchOutcome]] = None) -> None:
    super().__init__(message)
    self.outcomes = outcomes or []


EngineFactory = Callable[[], ConversionEngine]
Sleeper = Callable[[float], Awaitable[None]]


class ConversionManager:
  """Runs fetch, plan and per-batch conversion with stub fallback for a repository."""

  def __init__(
    self,
    fetcher,
    engine_factory: EngineFactory,
    throttle: ThrottlePolicy,
    size_limit: int = DEFAULT_SIZE_LIMIT,
    group_by_priority: bool = True,
    fallback_excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
    event_logger=None,
    sleep: Sleeper = asyncio.sleep
  ) -> None:
    self.fetcher = fetcher
    self.engine_factory = engine_factory
    self.throttle = throttle
    self.size_limit = size_limit
    self.group_by_priority = group_by_priority
    self.fallback_excerpt_chars = fallback_excerpt_chars
    self.event_logger = event_logger
    self._sleep = sleep

  async def convert(
    self,
    token: str,
    owner: str,
    repo: str,
    branch: str,
    target: TargetSpec
  ) -> ConversionResult:
    started = time.time()
    repo_ref = f'{owner}/{repo}:{branch}'
    run_id = uuid.uuid4().hex[:12]
    logger.info('Starting conversion for %s to %s', repo_ref, target.describe())

    # Credentials are checked before any network traffic.
    engine = self.engine_factory()
    try:
      originals = await self.fetcher.fetch_repository_files(token, owner, repo, branch)
      if not originals:
        logger.info('No convertible files found for %s', repo_ref)
        return ConversionResult(files=[], message=NO_FILES_MESSAGE)

      self._log_event(run_id, 'conversion.started', f'Conversion started for {repo_ref}', {
        'repo': repo_ref,
        'target': target.as_dict(),
        'files': len(originals)
      })
      batches = plan_batches(originals, self.size_limit, self.group_by_priority)
      logger.info('Created %s batches for %s files', len(batches), len(originals))

      converted, outcomes = await self._convert_batches(engine, batches, target, run_id)
    finally:
      await engine.close()

    if not converted:
      self._log_event(run_id, 'conversion.failed', f'Conversion failed for {repo_ref}', {
        'outcomes': [outcome.as_dict() for outcome in outcomes]
      })
      raise ConversionRunError('Conversion failed for all batches', outcomes)

    summary = ConversionSummary(
      original_files=len(originals),
      converted_files=len(converted),
      fallback_files=sum(1 for item in converted if item.is_fallback),
      batches=len(batches),
      successful_batches=sum(1 for outcome in outcomes if outcome.status == BatchStatus.SUCCESS),
      target=target,
      outcomes=outcomes,
      elapsed_seconds=time.time() - started
    )
    warnings = self._build_warnings(outcomes)
    self._log_event(run_id, 'conversion.completed', f'Conversion completed for {repo_ref}', summary.as_dict())
    logger.info(
      'Conversion completed for %s: %s files from %s originals (%s fallback)',
      repo_ref,
      summary.converted_files,
      summary.original_files,
      summary.fallback_files
    )
    return ConversionResult(files=converted, summary=summary, warnings=warnings)

  async def _convert_batches(
    self,
    engine: ConversionEngine,
    batches: Sequence[Batch],
    target: TargetSpec,
    run_id: Optional[str] = None
  ) -> tuple[List[ConvertedFile], List[BatchOutcome]]:
    converted: List[ConvertedFile] = []
    outcomes: List[BatchOutcome] = []
    for position, batch in enumerate(batches):
      logger.info('Converting batch %s/%s', batch.index, len(batches))
      try:
        files = await engine.convert_batch(batch, target)
      except ConfigurationError:
        raise
      except Exception as exc:
        logger.error('Error converting batch %s: %s', batch.index, exc)
        files = generate_fallback_files(
          batch,
          target,
          reason=str(exc),
          excerpt_chars=self.fallback_excerpt_chars,
          taken={item.path for item in converted}
        )
        outcome = BatchOutcome(
          batch_index=batch.index,
          status=BatchStatus.FALLBACK,
          file_count=len(batch),
          error=str(exc),
          original_paths=batch.paths
        )
        self._log_event(run_id, 'batch.fallback', f'Batch {batch.index} fell back to placeholders', outcome.as_dict())
      else:
        outcome = BatchOutcome(
          batch_index=batch.index,
          status=BatchStatus.SUCCESS,
          file_count=len(files),
          original_paths=batch.paths
        )
      converted.extend(files)
      outcomes.append(outcome)

      if position < len(batches) - 1 and self.throttle.batch_delay_seconds > 0:
        await self._sleep(self.throttle.batch_delay_seconds)
    return converted, outcomes

  def _build_warnings(self, outcomes: Sequence[BatchOutcome]) -> Optional[ConversionWarnings]:
    failed = [outcome for outcome in outcomes if outcome.status == BatchStatus.FALLBACK]
    if not failed:
      return None
    manual_review: List[str] = []
    for outcome in failed:
      manual_review.extend(outcome.original_paths)
    return ConversionWarnings(
      message=f'{len(failed)} batches failed to convert',
      errors=failed,
      manual_review=manual_review
    )

  def _log_event(self, run_id: Optional[str], category: str, message: str, payload: dict) -> None:
    if not self.event_logger:
      return
    try:
      self.event_logger.log_event(category, message, payload, run=run_id)
    except OSError:
      logger.debug('Failed to write conversion event', exc_info=True)
