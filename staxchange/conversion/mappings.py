from __future__ import annotations

from typing import Dict


DEFAULT_EXTENSION = '.txt'
DEFAULT_COMMENT_PREFIX = '#'


LANGUAGE_ALIASES = {
  'py': 'python',
  'python3': 'python',
  'js': 'javascript',
  'node': 'javascript',
  'nodejs': 'javascript',
  'node.js': 'javascript',
  'ts': 'typescript',
  'c#': 'csharp',
  'cs': 'csharp',
  'c-sharp': 'csharp',
  'dotnet': 'csharp',
  '.net': 'csharp',
  'f#': 'fsharp',
  'golang': 'go',
  'rs': 'rust',
  'rb': 'ruby',
  'kt': 'kotlin',
  'c++': 'cpp',
  'cplusplus': 'cpp',
  'objective-c': 'objc',
  'objectivec': 'objc',
  'vb': 'vbnet',
  'vb.net': 'vbnet'
}


TARGET_EXTENSIONS = {
  'python': '.py',
  'javascript': '.js',
  'typescript': '.ts',
  'java': '.java',
  'kotlin': '.kt',
  'scala': '.scala',
  'groovy': '.groovy',
  'csharp': '.cs',
  'fsharp': '.fs',
  'vbnet': '.vb',
  'go': '.go',
  'rust': '.rs',
  'ruby': '.rb',
  'php': '.php',
  'swift': '.swift',
  'objc': '.m',
  'c': '.c',
  'cpp': '.cpp',
  'dart': '.dart',
  'elixir': '.ex',
  'lua': '.lua',
  'perl': '.pl',
  'r': '.r'
}


COMMENT_PREFIXES = {
  'python': '#',
  'ruby': '#',
  'perl': '#',
  'r': '#',
  'elixir': '#',
  'lua': '--',
  'vbnet': "'",
  'javascript': '//',
  'typescript': '//',
  'java': '//',
  'kotlin': '//',
  'scala': '//',
  'groovy': '//',
  'csharp': '//',
  'fsharp': '//',
  'go': '//',
  'rust': '//',
  'php': '//',
  'swift': '//',
  'objc': '//',
  'c': '//',
  'cpp': '//',
  'dart': '//'
}


def normalize_language(language: str) -> str:
  key = (language or '').strip().lower()
  return LANGUAGE_ALIASES.get(key, key)


def target_extension(language: str) -> str:
  return TARGET_EXTENSIONS.get(normalize_language(language), DEFAULT_EXTENSION)


def comment_prefix(language: str) -> str:
  return COMMENT_PREFIXES.get(normalize_language(language), DEFAULT_COMMENT_PREFIX)


def extension_table() -> Dict[str, str]:
  return dict(TARGET_EXTENSIONS)
