from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from staxchange.config import Settings, settings as default_settings
from staxchange.conversion.models import TreeEntry

logger = logging.getLogger(__name__)


class GitHubError(RuntimeError):
  """Raised for non-2xx GitHub API responses and unusable payloads."""

  def __init__(self, message: str, status_code: Optional[int] = None) -> None:
    super().__init__(message)
    self.status_code = status_code


class GitHubClient:
  """Thin async wrapper over the GitHub REST API.

  The access token is passed to every call; the client itself holds no
  credentials.
  """

  def __init__(
    self,
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
  ) -> None:
    self.config = config or default_settings
    self.base_url = self.config.github_api_url.rstrip('/')
    self._client = httpx.AsyncClient(timeout=self.config.request_timeout_seconds, transport=transport)

  def _headers(self, token: str) -> Dict[str, str]:
    return {
      'Authorization': f'Bearer {token}',
      'Accept': 'application/vnd.github+json',
      'User-Agent': self.config.github_user_agent
    }

  async def _request(
    self,
    method: str,
    token: str,
    path: str,
    params: Optional[Dict[str, Any]] = None,
    json: Optional[Dict[str, Any]] = None
  ) -> Any:
    url = f'{self.base_url}{path}'
    try:
      resp = await self._client.request(method, url, headers=self._headers(token), params=params, json=json)
    except httpx.HTTPError as exc:
      raise GitHubError(f'GitHub request failed: {exc}') from exc
    if resp.status_code >= 400:
      raise GitHubError(f'GitHub API error {resp.status_code}: {resp.text}', status_code=resp.status_code)
    try:
      return resp.json()
    except ValueError as exc:
      raise GitHubError(f'GitHub returned a non-JSON body for {path}') from exc

  async def list_repositories(self, token: str) -> List[Dict[str, Any]]:
    data = await self._request('GET', token, '/user/repos', params={'per_page': 100, 'sort': 'updated'})
    return data if isinstance(data, list) else []

  async def list_branches(self, token: str, owner: str, repo: str) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    branches = await self._request('GET', token, f'/repos/{owner}/{repo}/branches', params={'per_page': 100})
    info = await self._request('GET', token, f'/repos/{owner}/{repo}')
    default_branch = info.get('default_branch') if isinstance(info, dict) else None
    return (branches if isinstance(branches, list) else []), default_branch

  async def get_branch_sha(self, token: str, owner: str, repo: str, branch: str) -> str:
    data = await self._request('GET', token, f'/repos/{owner}/{repo}/branches/{quote(branch, safe="")}')
    commit = data.get('commit') if isinstance(data, dict) else None
    sha = commit.get('sha') if isinstance(commit, dict) else None
    if not sha:
      raise GitHubError(f'Could not find SHA for branch {branch}')
    return sha

  async def get_tree(self, token: str, owner: str, repo: str, sha: str) -> List[TreeEntry]:
    data = await self._request('GET', token, f'/repos/{owner}/{repo}/git/trees/{sha}', params={'recursive': 1})
    if isinstance(data, dict) and data.get('truncated'):
      logger.warning('Tree for %s/%s@%s was truncated by GitHub', owner, repo, sha)
    entries: List[TreeEntry] = []
    for node in (data.get('tree') or []) if isinstance(data, dict) else []:
      if not isinstance(node, dict) or not isinstance(node.get('path'), str):
        continue
      size = node.get('size')
      entries.append(TreeEntry(path=node['path'], type=str(node.get('type', '')), size=size if isinstance(size, int) else None))
    return entries

  async def get_file_content(self, token: str, owner: str, repo: str, path: str, ref: str) -> str:
    data = await self._request(
      'GET',
      token,
      f'/repos/{owner}/{repo}/contents/{quote(path)}',
      params={'ref': ref}
    )
    encoded = data.get('content') if isinstance(data, dict) else None
    if not isinstance(encoded, str):
      raise GitHubError(f'No content returned for {path}')
    # Blobs over 1 MB come back with encoding "none" and an empty body.
    if data.get('encoding') != 'base64':
      raise GitHubError(f'Content for {path} is not inline (encoding={data.get("encoding")!r})')
    try:
      raw = base64.b64decode(encoded)
    except (binascii.Error, ValueError) as exc:
      raise GitHubError(f'Could not decode content for {path}') from exc
    return raw.decode('utf-8', errors='replace')

  async def create_repository(
    self,
    token: str,
    name: str,
    description: str,
    private: bool = False
  ) -> Dict[str, Any]:
    return await self._request(
      'POST',
      token,
      '/user/repos',
      json={'name': name, 'private': private, 'auto_init': True, 'description': description}
    )

  async def put_file(
    self,
    token: str,
    owner: str,
    repo: str,
    path: str,
    content: str,
    message: str,
    committer: Optional[Dict[str, str]] = None
  ) -> Dict[str, Any]:
    body: Dict[str, Any] = {
      'message': message,
      'content': base64.b64encode(content.encode('utf-8')).decode('ascii')
    }
    if committer:
      body['committer'] = committer
    return await self._request('PUT', token, f'/repos/{owner}/{repo}/contents/{quote(path)}', json=body)

  async def aclose(self) -> None:
    await self._client.aclose()
