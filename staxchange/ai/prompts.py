from __future__ import annotations

from typing import Dict, List

from staxchange.conversion.models import Batch, TargetSpec


FILE_SEPARATOR = '=== FILE {index}: {path} ==='


def serialize_batch(batch: Batch) -> str:
  sections = []
  for index, source in enumerate(batch.files, start=1):
    header = FILE_SEPARATOR.format(index=index, path=source.path)
    sections.append(f'{header}\n{source.content}\n')
  return '\n\n'.join(sections)


def build_system_prompt(target: TargetSpec) -> str:
  return f"""You are a senior software engineer specialising in cross-platform code conversion.

TASK: Convert the provided source code files to the specified target technology stack.

TARGET STACK:
- Language: {target.language}
- Framework: {target.framework}
- Database: {target.database}

CONVERSION RULES:
1. Convert ALL code to the target language ({target.language})
2. Use the target framework ({target.framework}) patterns and conventions
3. Adapt database queries/models for {target.database}
4. Preserve the original functionality and business logic
5. Update file extensions to match the target language
6. Follow the target language's naming conventions and best practices
7. Include necessary imports/dependencies for the target stack

CRITICAL: You MUST return ONLY a valid JSON object with this exact structure:
{{
  "files": [
    {{
      "path": "converted/file/path.ext",
      "content": "converted code content here",
      "originalPath": "path/of/the/source/file.ext"
    }}
  ]
}}

Do not include any explanations, markdown formatting, or text outside the JSON object."""


def build_user_prompt(batch: Batch, target: TargetSpec) -> str:
  return (
    f'Convert these {len(batch.files)} files to {target.language} with {target.framework} framework '
    f'and {target.database} database:\n\n{serialize_batch(batch)}'
  )


def build_conversion_messages(batch: Batch, target: TargetSpec) -> List[Dict[str, str]]:
  return [
    {'role': 'system', 'content': build_system_prompt(target)},
    {'role': 'user', 'content': build_user_prompt(batch, target)}
  ]
