from typing import Dict, Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from staxchange.ai.clients import ConfigurationError
from staxchange.api.globals import conversion_manager, event_logger
from staxchange.api.utils import serialize_result
from staxchange.conversion.manager import ConversionRunError
from staxchange.conversion.models import TargetSpec
from staxchange.sources.github import GitHubError

router = APIRouter()

class TargetPayload(BaseModel):
  language: Optional[str] = Field(default=None, description='Target language, e.g. "python".')
  framework: Optional[str] = Field(default=None, description='Target framework, e.g. "fastapi".')
  database: Optional[str] = Field(default=None, description='Target database, e.g. "postgresql".')

class ConvertPayload(BaseModel):
  token: Optional[str] = Field(default=None, description='GitHub access token.')
  owner: Optional[str] = None
  repo: Optional[str] = None
  branch: Optional[str] = None
  target: Optional[TargetPayload] = None

@router.post('/api/convert')
async def convert_repository(payload: ConvertPayload) -> Dict[str, Any]:
  if not payload.token or not payload.owner or not payload.repo or not payload.branch:
    raise HTTPException(status_code=400, detail='Missing required fields: token, owner, repo, branch')
  target = payload.target
  if not target or not target.language or not target.framework or not target.database:
    raise HTTPException(
      status_code=400,
      detail='Missing or incomplete target specification (language, framework, database required)'
    )

  spec = TargetSpec(language=target.language, framework=target.framework, database=target.database)
  try:
    result = await conversion_manager.convert(payload.token, payload.owner, payload.repo, payload.branch, spec)
  except ConfigurationError as exc:
    raise HTTPException(status_code=500, detail=str(exc)) from exc
  except ConversionRunError as exc:
    raise HTTPException(
      status_code=500,
      detail={
        'error': str(exc),
        'details': [outcome.as_dict() for outcome in exc.outcomes],
        'message': 'No files were successfully converted. Please check the error details and try again.'
      }
    ) from exc
  except GitHubError as exc:
    raise HTTPException(status_code=502, detail=str(exc)) from exc
  return serialize_result(result)

@router.get('/api/events')
async def conversion_events(limit: int = 200, category: Optional[str] = None) -> Dict[str, Any]:
  return {'entries': event_logger.recent(limit, category=category)}
