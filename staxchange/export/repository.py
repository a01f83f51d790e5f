from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from staxchange.sources.github import GitHubClient

logger = logging.getLogger(__name__)

COMMITTER = {'name': 'StaxChange', 'email': 'bot@staxchange.ai'}


@dataclass
class UploadResult:
  path: str
  success: bool
  error: Optional[str] = None


@dataclass
class ExportResult:
  html_url: Optional[str]
  clone_url: Optional[str]
  repository: Dict[str, Any]
  uploads: List[UploadResult] = field(default_factory=list)

  @property
  def failed(self) -> List[UploadResult]:
    return [upload for upload in self.uploads if not upload.success]

  def upload_stats(self) -> Dict[str, Any]:
    failed = self.failed
    return {
      'total': len(self.uploads),
      'successful': len(self.uploads) - len(failed),
      'failed': len(failed),
      'failed_files': [{'path': upload.path, 'error': upload.error} for upload in failed]
    }

  def as_dict(self) -> Dict[str, Any]:
    return {
      'html_url': self.html_url,
      'clone_url': self.clone_url,
      'repository': self.repository,
      'upload_stats': self.upload_stats()
    }


class RepositoryExporter:
  """Creates a GitHub repository and uploads converted files into it."""

  def __init__(
    self,
    github: GitHubClient,
    window_size: int = 5,
    window_delay_seconds: float = 0.5,
    init_delay_seconds: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
  ) -> None:
    self.github = github
    self.window_size = max(1, window_size)
    self.window_delay_seconds = window_delay_seconds
    self.init_delay_seconds = init_delay_seconds
    self._sleep = sleep

  async def export(
    self,
    token: str,
    repo_name: str,
    files: Sequence[Mapping[str, Any]],
    description: Optional[str] = None,
    private: bool = False
  ) -> ExportResult:
    if not files:
      raise ValueError('Files must be a non-empty array')
    description = description or f'Converted repository via StaxChange - {datetime.now(timezone.utc).isoformat()}'
    logger.info('Creating repository %s with %s files', repo_name, len(files))
    created = await self.github.create_repository(token, repo_name, description, private)
    owner = (created.get('owner') or {}).get('login')
    name = created.get('name') or repo_name
    logger.info('Repository created: %s', created.get('html_url'))

    if self.init_delay_seconds > 0:
      await self._sleep(self.init_delay_seconds)

    uploads: List[UploadResult] = []
    total_windows = (len(files) + self.window_size - 1) // self.window_size
    for start in range(0, len(files), self.window_size):
      window = files[start:start + self.window_size]
      results = await asyncio.gather(*(self._upload(token, owner, name, item) for item in window))
      uploads.extend(results)
      if start + self.window_size < len(files) and self.window_delay_seconds > 0:
        await self._sleep(self.window_delay_seconds)
      logger.debug('Completed upload window %s/%s', start // self.window_size + 1, total_windows)

    result = ExportResult(
      html_url=created.get('html_url'),
      clone_url=created.get('clone_url'),
      repository={
        'name': name,
        'full_name': created.get('full_name'),
        'owner': owner,
        'private': created.get('private', private)
      },
      uploads=uploads
    )
    stats = result.upload_stats()
    logger.info('Upload completed: %s successful, %s failed', stats['successful'], stats['failed'])
    return result

  async def _upload(self, token: str, owner: Optional[str], repo: str, item: Mapping[str, Any]) -> UploadResult:
    raw_path = item.get('path') if isinstance(item, Mapping) else None
    if not isinstance(raw_path, str) or not isinstance(item.get('content'), str):
      return UploadResult(path=str(raw_path or 'unknown'), success=False, error='Invalid file object')
    path = raw_path.replace('\\', '/').lstrip('/')
    if not path:
      return UploadResult(path='empty', success=False, error='Empty file path')
    if not owner:
      return UploadResult(path=path, success=False, error='Repository owner unknown')
    try:
      await self.github.put_file(token, owner, repo, path, item['content'], f'Add {path}', COMMITTER)
    except Exception as exc:
      logger.warning('Error uploading file %s: %s', path, exc)
      return UploadResult(path=path, success=False, error=str(exc))
    return UploadResult(path=path, success=True)
