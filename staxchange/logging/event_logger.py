from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

JOURNAL_FILENAME = 'events.log'
DEFAULT_MAX_BYTES = 5 * 1024 * 1024


class EventLogger:
  """Append-only JSON-lines journal of conversion runs and exports.

  When the journal grows past ``max_bytes`` it is moved aside to
  ``events.log.1`` (replacing any older copy) and a fresh file is started.
  """

  def __init__(self, base_dir: Path, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
    self.base_dir = Path(base_dir)
    self.base_dir.mkdir(parents=True, exist_ok=True)
    self.journal_path = self.base_dir / JOURNAL_FILENAME
    self.max_bytes = max_bytes

  @property
  def rotated_path(self) -> Path:
    return self.journal_path.with_name(f'{JOURNAL_FILENAME}.1')

  def _rotate_if_needed(self) -> None:
    if self.max_bytes <= 0 or not self.journal_path.exists():
      return
    if self.journal_path.stat().st_size < self.max_bytes:
      return
    self.journal_path.replace(self.rotated_path)
    logger.info('Rotated event journal to %s', self.rotated_path)

  def log_event(
    self,
    category: str,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    run: Optional[str] = None
  ) -> None:
    entry: Dict[str, Any] = {
      'timestamp': datetime.now(timezone.utc).isoformat(),
      'category': category,
      'message': message,
      'payload': payload or {}
    }
    if run:
      entry['run'] = run
    self._rotate_if_needed()
    with self.journal_path.open('a', encoding='utf-8') as handle:
      handle.write(json.dumps(entry, default=str) + '\n')

  def log_error(self, message: str, payload: Optional[Dict[str, Any]] = None, run: Optional[str] = None) -> None:
    self.log_event('error', message, payload, run=run)

  def recent(self, limit: int = 200, category: Optional[str] = None) -> List[Dict[str, Any]]:
    """Newest-last entries from the live journal, optionally for one category prefix."""
    if limit <= 0 or not self.journal_path.exists():
      return []
    entries: List[Dict[str, Any]] = []
    for line in self.journal_path.read_text(encoding='utf-8').splitlines():
      if not line.strip():
        continue
      try:
        entry = json.loads(line)
      except json.JSONDecodeError:
        logger.warning('Malformed journal line: %s', line[:200])
        continue
      if category and not str(entry.get('category', '')).startswith(category):
        continue
      entries.append(entry)
    return entries[-limit:]
