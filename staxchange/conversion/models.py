from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


PRIORITY_MANIFEST = 1
PRIORITY_ENTRYPOINT = 2
PRIORITY_OTHER = 3


@dataclass(frozen=True)
class TreeEntry:
  path: str
  type: str  # blob, tree, commit
  size: Optional[int] = None

  @property
  def is_blob(self) -> bool:
    return self.type == 'blob'


@dataclass(frozen=True)
class SelectedEntry:
  path: str
  priority: int = PRIORITY_OTHER


@dataclass(frozen=True)
class SourceFile:
  path: str
  content: str
  priority: int = PRIORITY_OTHER
  size: int = -1

  def __post_init__(self) -> None:
    if self.size < 0:
      object.__setattr__(self, 'size', len(self.content))


@dataclass(frozen=True)
class TargetSpec:
  language: str
  framework: str
  database: str

  def describe(self) -> str:
    return f'{self.language}/{self.framework}/{self.database}'

  def as_dict(self) -> Dict[str, str]:
    return {
      'language': self.language,
      'framework': self.framework,
      'database': self.database
    }


@dataclass(frozen=True)
class Batch:
  index: int
  files: Tuple[SourceFile, ...]

  def __post_init__(self) -> None:
    if not self.files:
      raise ValueError('A batch must contain at least one file.')

  @property
  def size(self) -> int:
    return sum(source.size for source in self.files)

  @property
  def paths(self) -> List[str]:
    return [source.path for source in self.files]

  def __len__(self) -> int:
    return len(self.files)


@dataclass
class ConvertedFile:
  path: str
  content: str
  original_path: str
  is_fallback: bool = False

  def as_dict(self) -> Dict[str, Any]:
    return {
      'path': self.path,
      'content': self.content,
      'originalPath': self.original_path,
      'isFallback': self.is_fallback
    }


class BatchStatus(Enum):
  SUCCESS = 'success'
  FALLBACK = 'fallback'


@dataclass
class BatchOutcome:
  batch_index: int
  status: BatchStatus
  file_count: int
  error: Optional[str] = None
  original_paths: List[str] = field(default_factory=list)

  def as_dict(self) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
      'batch': self.batch_index,
      'status': self.status.value,
      'fileCount': self.file_count
    }
    if self.error:
      payload['error'] = self.error
    return payload


@dataclass(frozen=True)
class ThrottlePolicy:
  fetch_window_size: int = 5
  fetch_window_delay_seconds: float = 0.2
  batch_delay_seconds: float = 1.0

  @classmethod
  def unthrottled(cls, fetch_window_size: int = 5) -> 'ThrottlePolicy':
    return cls(fetch_window_size=fetch_window_size, fetch_window_delay_seconds=0.0, batch_delay_seconds=0.0)


@dataclass
class ConversionSummary:
  original_files: int
  converted_files: int
  fallback_files: int
  batches: int
  successful_batches: int
  target: TargetSpec
  outcomes: List[BatchOutcome] = field(default_factory=list)
  elapsed_seconds: float = 0.0

  def as_dict(self) -> Dict[str, Any]:
    return {
      'originalFiles': self.original_files,
      'convertedFiles': self.converted_files,
      'fallbackFiles': self.fallback_files,
      'batches': self.batches,
      'successfulBatches': self.successful_batches,
      'target': self.target.as_dict(),
      'outcomes': [outcome.as_dict() for outcome in self.outcomes],
      'elapsedSeconds': round(self.elapsed_seconds, 3)
    }


@dataclass
class ConversionWarnings:
  message: str
  errors: List[BatchOutcome] = field(default_factory=list)
  manual_review: List[str] = field(default_factory=list)

  def as_dict(self) -> Dict[str, Any]:
    return {
      'message': self.message,
      'errors': [outcome.as_dict() for outcome in self.errors],
      'manualReview': self.manual_review
    }


@dataclass
class ConversionResult:
  files: List[ConvertedFile]
  summary: Optional[ConversionSummary] = None
  warnings: Optional[ConversionWarnings] = None
  message: Optional[str] = None

  @property
  def has_fallbacks(self) -> bool:
    return any(item.is_fallback for item in self.files)
