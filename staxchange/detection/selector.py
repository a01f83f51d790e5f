from __future__ import annotations

from pathlib import PurePosixPath
from typing import Iterable, List, Optional

from staxchange.conversion.models import (
  PRIORITY_ENTRYPOINT,
  PRIORITY_MANIFEST,
  PRIORITY_OTHER,
  SelectedEntry,
  TreeEntry
)

IGNORED_DIRECTORIES = {
  'node_modules',
  'bower_components',
  'jspm_packages',
  'vendor',
  '.git',
  '.svn',
  '.hg',
  'dist',
  'build',
  'out',
  'target',
  'bin',
  'obj',
  '.next',
  '.nuxt',
  '.output',
  '.svelte-kit',
  'coverage',
  '.nyc_output',
  'htmlcov',
  '.idea',
  '.vscode',
  '.vs',
  '__pycache__',
  '.pytest_cache',
  '.mypy_cache',
  '.tox',
  '.venv',
  'venv',
  '.gradle',
  '.cache',
  '.parcel-cache',
  '.turbo'
}

IGNORED_FILENAMES = {
  '.ds_store',
  'thumbs.db',
  'desktop.ini',
  'package-lock.json',
  'yarn.lock',
  'pnpm-lock.yaml',
  'poetry.lock',
  'pipfile.lock',
  'composer.lock',
  'gemfile.lock',
  'cargo.lock'
}

IGNORED_SUFFIXES = ('.log', '.min.js', '.min.css', '.map', '.pyc', '.class')

SOURCE_EXTENSIONS = {
  '.ts', '.tsx', '.js', '.jsx', '.mjs', '.cjs', '.vue', '.svelte',
  '.py', '.rb', '.php', '.java', '.kt', '.kts', '.scala', '.groovy',
  '.go', '.rs', '.cs', '.fs', '.vb', '.swift', '.m', '.c', '.h', '.cc', '.cpp', '.hpp',
  '.dart', '.ex', '.exs', '.erl', '.clj', '.lua', '.pl', '.r',
  '.sql', '.graphql', '.gql', '.prisma', '.proto',
  '.sh', '.bash', '.ps1', '.bat'
}

MARKUP_EXTENSIONS = {'.html', '.htm', '.css', '.scss', '.sass', '.less', '.ejs', '.hbs', '.jinja', '.j2'}

CONFIG_EXTENSIONS = {
  '.json', '.yml', '.yaml', '.toml', '.xml', '.ini', '.cfg', '.conf', '.properties',
  '.gradle', '.csproj', '.fsproj', '.vbproj', '.sln'
}

DOC_EXTENSIONS = {'.md', '.mdx', '.rst', '.txt'}

ALLOWED_EXTENSIONS = SOURCE_EXTENSIONS | MARKUP_EXTENSIONS | CONFIG_EXTENSIONS | DOC_EXTENSIONS

# Compared against the lowercased filename with its last extension removed.
TOOL_CONFIG_BASENAMES = {
  'dockerfile',
  'makefile',
  'procfile',
  'gemfile',
  'rakefile',
  'pipfile',
  'jenkinsfile',
  'vagrantfile',
  '.gitignore',
  '.dockerignore',
  '.editorconfig',
  '.eslintrc',
  '.prettierrc',
  '.babelrc',
  '.stylelintrc',
  '.nvmrc',
  'tsconfig',
  'jsconfig',
  'vite.config',
  'webpack.config',
  'rollup.config',
  'jest.config',
  'vitest.config',
  'babel.config',
  'tailwind.config',
  'postcss.config',
  'next.config',
  'nuxt.config',
  'svelte.config',
  'angular',
  'nodemon'
}

MANIFEST_FILENAMES = {
  'package.json',
  'requirements.txt',
  'pyproject.toml',
  'setup.py',
  'setup.cfg',
  'pipfile',
  'pom.xml',
  'build.gradle',
  'build.gradle.kts',
  'settings.gradle',
  'go.mod',
  'cargo.toml',
  'composer.json',
  'gemfile',
  'mix.exs',
  'pubspec.yaml'
}

MANIFEST_SUFFIXES = ('.csproj', '.fsproj', '.vbproj', '.sln')

ENTRYPOINT_MARKERS = ('main', 'index', 'app.', 'server.')


def normalize_path(path: str) -> str:
  cleaned = path.replace('\\', '/').strip()
  while cleaned.startswith('./'):
    cleaned = cleaned[2:]
  return cleaned.lstrip('/')


def is_ignored(path: str) -> bool:
  parts = [part.lower() for part in PurePosixPath(path).parts]
  if not parts:
    return True
  if any(part in IGNORED_DIRECTORIES for part in parts[:-1]):
    return True
  filename = parts[-1]
  if filename in IGNORED_FILENAMES:
    return True
  return filename.endswith(IGNORED_SUFFIXES)


def _strip_extension(filename: str) -> str:
  stem, dot, _ = filename.rpartition('.')
  if not dot or not stem:
    return filename
  return stem


def is_relevant(path: str) -> bool:
  filename = PurePosixPath(path).name.lower()
  if not filename:
    return False
  suffix = PurePosixPath(filename).suffix
  if suffix in ALLOWED_EXTENSIONS:
    return True
  if filename.endswith('.env.example'):
    return True
  return filename in TOOL_CONFIG_BASENAMES or _strip_extension(filename) in TOOL_CONFIG_BASENAMES


def classify_priority(path: str) -> int:
  filename = PurePosixPath(path).name.lower()
  if filename in MANIFEST_FILENAMES or filename.endswith(MANIFEST_SUFFIXES):
    return PRIORITY_MANIFEST
  if any(marker in filename for marker in ENTRYPOINT_MARKERS):
    return PRIORITY_ENTRYPOINT
  return PRIORITY_OTHER


def select_files(entries: Iterable[TreeEntry], max_files: Optional[int] = None) -> List[SelectedEntry]:
  """Returns the blobs worth converting, manifests first, then entrypoints, then the rest.

  Each tier is sorted by path. The result is cut at ``max_files``; anything past
  the cut is silently left out.
  """
  selected: List[SelectedEntry] = []
  seen = set()
  for entry in entries:
    if not entry.is_blob:
      continue
    path = normalize_path(entry.path)
    if not path or path in seen:
      continue
    if is_ignored(path) or not is_relevant(path):
      continue
    seen.add(path)
    selected.append(SelectedEntry(path=path, priority=classify_priority(path)))

  selected.sort(key=lambda item: (item.priority, item.path))
  if max_files is not None and max_files >= 0:
    selected = selected[:max_files]
  return selected
