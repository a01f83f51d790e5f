from __future__ import annotations

import logging
from typing import List, Sequence

from staxchange.conversion.models import Batch, SourceFile

logger = logging.getLogger(__name__)

DEFAULT_SIZE_LIMIT = 40000


def plan_batches(
  files: Sequence[SourceFile],
  size_limit: int = DEFAULT_SIZE_LIMIT,
  group_by_priority: bool = True
) -> List[Batch]:
  """Greedily packs files into size-bounded batches, keeping input order.

  A file that would push the running total past ``size_limit`` closes the
  current batch and opens the next one. A single file larger than the limit
  still gets a batch of its own. With ``group_by_priority`` a change of
  priority tier also closes the batch.
  """
  if size_limit <= 0:
    raise ValueError('size_limit must be positive')

  batches: List[Batch] = []
  current: List[SourceFile] = []
  current_size = 0

  def close() -> None:
    nonlocal current, current_size
    if current:
      batches.append(Batch(index=len(batches) + 1, files=tuple(current)))
    current = []
    current_size = 0

  for source in files:
    tier_changed = group_by_priority and current and current[-1].priority != source.priority
    if current and (tier_changed or current_size + source.size > size_limit):
      close()
    if source.size > size_limit:
      logger.info('File %s (%s chars) exceeds the batch limit, converting it alone', source.path, source.size)
    current.append(source)
    current_size += source.size
  close()

  logger.debug('Planned %s batches for %s files (limit=%s)', len(batches), len(files), size_limit)
  return batches
