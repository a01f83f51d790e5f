from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from staxchange.conversion.models import ThrottlePolicy


@dataclass
class Settings:
  """Global backend configuration derived from environment variables."""

  backend_host: str = os.getenv('BACKEND_HOST', '127.0.0.1')
  backend_port: int = int(os.getenv('BACKEND_PORT', '3000'))
  log_level: str = os.getenv('BACKEND_LOG_LEVEL', 'info')
  data_dir: Path = Path(os.getenv('STAXCHANGE_DATA_DIR', './data')).resolve()
  frontend_url: Optional[str] = os.getenv('FRONTEND_URL')
  openrouter_api_key: Optional[str] = os.getenv('OPENROUTER_API_KEY')
  openrouter_base_url: str = os.getenv('OPENROUTER_BASE_URL', 'https://openrouter.ai/api/v1')
  openrouter_model: str = os.getenv('OPENROUTER_MODEL', 'z-ai/glm-4.5-air:free')
  openrouter_referer: str = os.getenv('OPENROUTER_REFERER', 'https://staxchange.ai')
  openrouter_title: str = os.getenv('OPENROUTER_TITLE', 'StaxChange AI Converter')
  github_api_url: str = os.getenv('GITHUB_API_URL', 'https://api.github.com')
  github_user_agent: str = os.getenv('GITHUB_USER_AGENT', 'StaxChange-Python-Server')
  request_timeout_seconds: float = float(os.getenv('STAXCHANGE_REQUEST_TIMEOUT', '300'))
  ai_retry_attempts: int = int(os.getenv('STAXCHANGE_AI_RETRY_ATTEMPTS', '3'))
  ai_retry_backoff_seconds: float = float(os.getenv('STAXCHANGE_AI_RETRY_BACKOFF', '2'))
  ai_temperature: float = float(os.getenv('STAXCHANGE_AI_TEMPERATURE', '0.1'))
  ai_max_tokens: int = int(os.getenv('STAXCHANGE_AI_MAX_TOKENS', '8000'))
  max_files: int = int(os.getenv('STAXCHANGE_MAX_FILES', '50'))
  max_file_bytes: int = int(os.getenv('STAXCHANGE_MAX_FILE_BYTES', '100000'))
  batch_size_limit: int = int(os.getenv('STAXCHANGE_BATCH_SIZE_LIMIT', '40000'))
  group_by_priority: bool = os.getenv('STAXCHANGE_GROUP_BY_PRIORITY', 'true').lower() == 'true'
  fetch_window_size: int = int(os.getenv('STAXCHANGE_FETCH_WINDOW', '5'))
  fetch_window_delay_seconds: float = float(os.getenv('STAXCHANGE_FETCH_DELAY', '0.2'))
  batch_delay_seconds: float = float(os.getenv('STAXCHANGE_BATCH_DELAY', '1.0'))
  fallback_excerpt_chars: int = int(os.getenv('STAXCHANGE_FALLBACK_EXCERPT', '500'))
  upload_window_size: int = int(os.getenv('STAXCHANGE_UPLOAD_WINDOW', '5'))
  upload_window_delay_seconds: float = float(os.getenv('STAXCHANGE_UPLOAD_DELAY', '0.5'))
  repo_init_delay_seconds: float = float(os.getenv('STAXCHANGE_REPO_INIT_DELAY', '1.0'))

  def throttle_policy(self) -> ThrottlePolicy:
    return ThrottlePolicy(
      fetch_window_size=max(1, self.fetch_window_size),
      fetch_window_delay_seconds=max(0.0, self.fetch_window_delay_seconds),
      batch_delay_seconds=max(0.0, self.batch_delay_seconds)
    )

  @property
  def llm_configured(self) -> bool:
    return bool(self.openrouter_api_key)


settings = Settings()
