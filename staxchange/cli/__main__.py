from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from staxchange.config import settings

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


def parse_global_args() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(prog='staxchange', description='StaxChange repository converter CLI')
  sub = parser.add_subparsers(dest='command', required=True)

  p_serve = sub.add_parser('serve', help='Run the HTTP backend')
  p_serve.add_argument('--host', default=settings.backend_host, help='Host interface to bind.')
  p_serve.add_argument('--port', default=settings.backend_port, type=int, help='Port to serve on.')
  p_serve.add_argument('--reload', action='store_true', help='Enable autoreload (development only).')
  p_serve.add_argument('--log-level', default=settings.log_level, help='Uvicorn log level.')

  p_repos = sub.add_parser('repos', help='List repositories visible to the token')
  p_repos.add_argument('--token', required=True)

  p_branches = sub.add_parser('branches', help='List branches of a repository')
  p_branches.add_argument('--token', required=True)
  p_branches.add_argument('--owner', required=True)
  p_branches.add_argument('--repo', required=True)

  p_convert = sub.add_parser('convert', help='Convert a repository branch to a target stack')
  p_convert.add_argument('--token', required=True)
  p_convert.add_argument('--owner', required=True)
  p_convert.add_argument('--repo', required=True)
  p_convert.add_argument('--branch', required=True)
  p_convert.add_argument('--language', required=True)
  p_convert.add_argument('--framework', required=True)
  p_convert.add_argument('--database', required=True)
  p_convert.add_argument('--zip', dest='zip_path', help='Write the converted files to this ZIP archive.')
  p_convert.add_argument('--create-repo', dest='create_repo', help='Create a GitHub repository with the converted files.')
  p_convert.add_argument('--private', action='store_true', help='Make the created repository private.')
  p_convert.add_argument('--json', action='store_true')

  return parser


def cmd_serve(ns: argparse.Namespace) -> int:
  import uvicorn
  uvicorn.run(
    'staxchange.api.app:app',
    host=ns.host,
    port=ns.port,
    log_level=ns.log_level,
    reload=ns.reload
  )
  return 0


async def _list_repos(token: str) -> int:
  from staxchange.sources.github import GitHubClient
  client = GitHubClient(settings)
  try:
    repos = await client.list_repositories(token)
  finally:
    await client.aclose()
  for repo in repos:
    print(f"{repo.get('full_name')}  (default: {repo.get('default_branch')})")
  return 0


async def _list_branches(token: str, owner: str, repo: str) -> int:
  from staxchange.sources.github import GitHubClient
  client = GitHubClient(settings)
  try:
    branches, default_branch = await client.list_branches(token, owner, repo)
  finally:
    await client.aclose()
  for branch in branches:
    name = branch.get('name')
    marker = ' *' if name == default_branch else ''
    print(f'{name}{marker}')
  return 0


async def _convert(ns: argparse.Namespace) -> int:
  from staxchange.api import globals as runtime
  try:
    return await _convert_and_export(ns, runtime)
  finally:
    await runtime.github_client.aclose()


async def _convert_and_export(ns: argparse.Namespace, runtime) -> int:
  from staxchange.ai.clients import ConfigurationError
  from staxchange.api.utils import serialize_result
  from staxchange.conversion.manager import ConversionRunError
  from staxchange.conversion.models import TargetSpec
  from staxchange.export.archive import build_zip_archive
  from staxchange.sources.github import GitHubError

  target = TargetSpec(language=ns.language, framework=ns.framework, database=ns.database)
  try:
    result = await runtime.conversion_manager.convert(ns.token, ns.owner, ns.repo, ns.branch, target)
  except (ConfigurationError, GitHubError) as exc:
    print(str(exc), file=sys.stderr)
    return 2
  except ConversionRunError as exc:
    print(f'{exc}: {[outcome.as_dict() for outcome in exc.outcomes]}', file=sys.stderr)
    return 2

  payload: Dict[str, Any] = serialize_result(result)
  if not result.files:
    print(result.message or 'No files converted.', file=sys.stderr)
    return 1

  files = payload['files']
  if ns.zip_path:
    archive = Path(ns.zip_path).expanduser().resolve()
    archive.parent.mkdir(parents=True, exist_ok=True)
    archive.write_bytes(build_zip_archive(files))
    payload['zip_path'] = str(archive)
  if ns.create_repo:
    try:
      export = await runtime.repository_exporter.export(ns.token, ns.create_repo, files, private=ns.private)
    except GitHubError as exc:
      print(f'Repository export failed: {exc}', file=sys.stderr)
      return 2
    payload['repository'] = export.as_dict()

  if ns.json:
    print(json.dumps(payload, indent=2))
  else:
    stats = payload.get('stats') or {}
    print(f"Converted {stats.get('convertedFiles', len(files))} files from {stats.get('originalFiles', '?')} originals "
          f"({stats.get('fallbackFiles', 0)} need manual review)")
    for review_path in (payload.get('warnings') or {}).get('manualReview', []):
      print(f'  manual review: {review_path}')
    if payload.get('zip_path'):
      print(f"Archive: {payload['zip_path']}")
    if payload.get('repository'):
      print(f"Repository: {payload['repository'].get('html_url')}")
  return 0


def main() -> int:
  parser = parse_global_args()
  ns = parser.parse_args()
  cmd = ns.command
  if cmd == 'serve':
    return cmd_serve(ns)
  if cmd == 'repos':
    return asyncio.run(_list_repos(ns.token))
  if cmd == 'branches':
    return asyncio.run(_list_branches(ns.token, ns.owner, ns.repo))
  if cmd == 'convert':
    return asyncio.run(_convert(ns))
  return 1


if __name__ == '__main__':
  raise SystemExit(main())
