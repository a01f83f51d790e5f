from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from staxchange.conversion.models import SelectedEntry, SourceFile, ThrottlePolicy, TreeEntry
from staxchange.detection.selector import select_files
from staxchange.sources.github import GitHubClient

logger = logging.getLogger(__name__)


class FileFetcher:
  """Lists a branch, picks the relevant files and downloads them in paced windows."""

  def __init__(
    self,
    github: GitHubClient,
    throttle: ThrottlePolicy,
    max_files: int = 50,
    max_file_bytes: int = 100000,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
  ) -> None:
    self.github = github
    self.throttle = throttle
    self.max_files = max_files
    self.max_file_bytes = max_file_bytes
    self._sleep = sleep

  async def fetch_repository_files(self, token: str, owner: str, repo: str, branch: str) -> List[SourceFile]:
    logger.info('Fetching files for %s/%s:%s', owner, repo, branch)
    sha = await self.github.get_branch_sha(token, owner, repo, branch)
    tree = await self.github.get_tree(token, owner, repo, sha)
    candidates = [entry for entry in tree if not self._too_large(entry)]
    selected = select_files(candidates, self.max_files)
    logger.info('Selected %s of %s tree entries for conversion', len(selected), len(tree))
    files = await self.fetch_selected(token, owner, repo, branch, selected)
    logger.info('Successfully fetched %s files', len(files))
    return files

  def _too_large(self, entry: TreeEntry) -> bool:
    if entry.size is None or entry.size <= self.max_file_bytes:
      return False
    if entry.is_blob:
      logger.info('Skipping %s: tree size %s exceeds the %s limit', entry.path, entry.size, self.max_file_bytes)
    return True

  async def fetch_selected(
    self,
    token: str,
    owner: str,
    repo: str,
    ref: str,
    selected: Sequence[SelectedEntry]
  ) -> List[SourceFile]:
    results: List[SourceFile] = []
    window = max(1, self.throttle.fetch_window_size)
    for start in range(0, len(selected), window):
      chunk = selected[start:start + window]
      fetched = await asyncio.gather(*(self._fetch_one(token, owner, repo, ref, entry) for entry in chunk))
      results.extend(source for source in fetched if source is not None)
      if start + window < len(selected) and self.throttle.fetch_window_delay_seconds > 0:
        await self._sleep(self.throttle.fetch_window_delay_seconds)
    return results

  async def _fetch_one(
    self,
    token: str,
    owner: str,
    repo: str,
    ref: str,
    entry: SelectedEntry
  ) -> Optional[SourceFile]:
    try:
      content = await self.github.get_file_content(token, owner, repo, entry.path, ref)
    except Exception as exc:
      logger.warning('Error fetching %s: %s', entry.path, exc)
      return None
    if len(content) > self.max_file_bytes:
      logger.info('Skipping %s: %s chars exceeds the %s limit', entry.path, len(content), self.max_file_bytes)
      return None
    return SourceFile(path=entry.path, content=content, priority=entry.priority)
