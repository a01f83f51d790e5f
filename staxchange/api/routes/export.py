from typing import Dict, Any, List, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from staxchange.api.globals import repository_exporter, event_logger
from staxchange.export.archive import ARCHIVE_FILENAME, build_zip_archive
from staxchange.sources.github import GitHubError

router = APIRouter()

class DownloadPayload(BaseModel):
  files: Optional[List[Any]] = None

class RepositoryCreatePayload(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  token: Optional[str] = None
  repo_name: Optional[str] = Field(default=None, alias='repoName')
  files: Optional[List[Any]] = None
  description: Optional[str] = None
  is_private: bool = Field(default=False, alias='isPrivate')

@router.post('/api/download')
async def download_zip(payload: DownloadPayload) -> Response:
  if payload.files is None:
    raise HTTPException(status_code=400, detail='No files provided')
  if not payload.files:
    raise HTTPException(status_code=400, detail='Files array is empty')
  data = build_zip_archive(payload.files)
  return Response(
    content=data,
    media_type='application/zip',
    headers={'Content-Disposition': f'attachment; filename="{ARCHIVE_FILENAME}"'}
  )

@router.post('/api/github-create')
async def create_repository(payload: RepositoryCreatePayload) -> Dict[str, Any]:
  if not payload.token or not payload.repo_name or payload.files is None:
    raise HTTPException(status_code=400, detail='Missing required fields: token, repoName, files')
  if not payload.files:
    raise HTTPException(status_code=400, detail='Files must be a non-empty array')
  try:
    result = await repository_exporter.export(
      payload.token,
      payload.repo_name,
      payload.files,
      description=payload.description,
      private=payload.is_private
    )
  except GitHubError as exc:
    raise HTTPException(status_code=502, detail=str(exc)) from exc
  stats = result.upload_stats()
  event_logger.log_event('export.repository', f'Exported {stats["successful"]} files to {result.html_url}', stats)
  return result.as_dict()
