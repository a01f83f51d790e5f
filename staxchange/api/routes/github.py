from typing import Dict, Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from staxchange.api.globals import github_client
from staxchange.sources.github import GitHubError

router = APIRouter()

class GitHubPayload(BaseModel):
  token: Optional[str] = None
  action: Optional[str] = Field(default=None, description='"branches" to list branches, anything else lists repositories.')
  owner: Optional[str] = None
  repo: Optional[str] = None

@router.post('/api/github')
async def github_proxy(payload: GitHubPayload) -> Dict[str, Any]:
  if not payload.token:
    raise HTTPException(status_code=400, detail='Missing token')

  try:
    if payload.action == 'branches':
      if not payload.owner or not payload.repo:
        raise HTTPException(status_code=400, detail='Missing owner or repo for branches action')
      branches, default_branch = await github_client.list_branches(payload.token, payload.owner, payload.repo)
      return {'branches': branches, 'default': default_branch}

    repos = await github_client.list_repositories(payload.token)
    return {'repos': repos}
  except GitHubError as exc:
    raise HTTPException(status_code=exc.status_code or 502, detail=str(exc)) from exc
