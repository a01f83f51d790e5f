from __future__ import annotations

import io
import logging
import zipfile
from typing import Any, Iterable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_NAME = 'file.txt'
ARCHIVE_FILENAME = 'converted.zip'


def archive_entry_name(path: Any) -> str:
  name = str(path or '').replace('\\', '/').lstrip('/')
  return name or DEFAULT_ENTRY_NAME


def build_zip_archive(files: Iterable[Mapping[str, Any]]) -> bytes:
  """Packs ``{path, content}`` mappings into an in-memory ZIP archive."""
  items = list(files)
  if not items:
    raise ValueError('Files array is empty')

  buffer = io.BytesIO()
  written = 0
  with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED, compresslevel=6) as zf:
    for item in items:
      if not isinstance(item, Mapping):
        logger.warning('Skipping invalid file object: %r', item)
        continue
      content = item.get('content') or ''
      zf.writestr(archive_entry_name(item.get('path')), str(content))
      written += 1

  data = buffer.getvalue()
  logger.info('ZIP generated with %s files, size: %s bytes', written, len(data))
  return data
