from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import List, Optional, Set

from staxchange.conversion.mappings import comment_prefix, target_extension
from staxchange.conversion.models import Batch, ConvertedFile, SourceFile, TargetSpec

logger = logging.getLogger(__name__)

DEFAULT_EXCERPT_CHARS = 500
MANUAL_REVIEW_MARKER = 'NEEDS MANUAL CONVERSION'


def fallback_path(original_path: str, language: str, taken: Optional[Set[str]] = None) -> str:
  """Derives the stub path, never reusing one already in ``taken``.

  ``src/app.ts`` becomes ``src/app.py``. If that is taken the original
  extension is kept as an infix (``src/app.ts.py``), then a counter is added
  (``src/app.ts.2.py``).
  """
  path = PurePosixPath(original_path)
  extension = target_extension(language)
  infixed = f'{original_path}{extension}'
  candidate = str(path.with_suffix(extension)) if path.suffix else infixed
  if not taken or candidate not in taken:
    return candidate
  if infixed not in taken:
    return infixed
  counter = 2
  while f'{original_path}.{counter}{extension}' in taken:
    counter += 1
  return f'{original_path}.{counter}{extension}'


def _stub_content(
  source: SourceFile,
  target: TargetSpec,
  reason: Optional[str],
  excerpt_chars: int
) -> str:
  prefix = comment_prefix(target.language)
  excerpt = source.content[:max(0, excerpt_chars)]
  truncated = len(source.content) > len(excerpt)

  lines = [
    f'{prefix} {MANUAL_REVIEW_MARKER}',
    f'{prefix} Automated conversion to {target.describe()} failed for this file.',
    f'{prefix} Original file: {source.path}',
  ]
  if reason:
    first_line = reason.strip().splitlines()[0] if reason.strip() else ''
    if first_line:
      lines.append(f'{prefix} Reason: {first_line[:200]}')
  lines.append(f'{prefix}')
  lines.append(f'{prefix} Original content excerpt ({len(excerpt)} of {source.size} characters):')
  for excerpt_line in excerpt.splitlines():
    lines.append(f'{prefix} {excerpt_line}'.rstrip())
  if truncated:
    lines.append(f'{prefix} ... (excerpt truncated, see the original repository for the full file)')
  return '\n'.join(lines) + '\n'


def generate_fallback_files(
  batch: Batch,
  target: TargetSpec,
  reason: Optional[str] = None,
  excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
  taken: Optional[Set[str]] = None
) -> List[ConvertedFile]:
  """Builds one placeholder per input file so nothing disappears from the output.

  The placeholder keeps the original path with the target language's
  extension, is marked for manual conversion and embeds only a short excerpt
  of the original content. Paths already in ``taken`` (earlier output of the
  run) and paths used by earlier stubs of this batch are not reused.
  """
  used = set(taken or ())
  results: List[ConvertedFile] = []
  for source in batch.files:
    path = fallback_path(source.path, target.language, used)
    used.add(path)
    results.append(
      ConvertedFile(
        path=path,
        content=_stub_content(source, target, reason, excerpt_chars),
        original_path=source.path,
        is_fallback=True
      )
    )
  logger.info('Generated %s fallback files for batch %s', len(results), batch.index)
  return results
