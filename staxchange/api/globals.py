from staxchange.ai.clients import OpenRouterClient
from staxchange.ai.engine import ConversionEngine
from staxchange.config import settings
from staxchange.conversion.manager import ConversionManager
from staxchange.export.repository import RepositoryExporter
from staxchange.logging.event_logger import EventLogger
from staxchange.sources.fetcher import FileFetcher
from staxchange.sources.github import GitHubClient


def build_engine() -> ConversionEngine:
  return ConversionEngine(OpenRouterClient(settings), model=settings.openrouter_model)


# Initialize globals
github_client = GitHubClient(settings)
event_logger = EventLogger(settings.data_dir / 'logs')
file_fetcher = FileFetcher(
  github_client,
  settings.throttle_policy(),
  max_files=settings.max_files,
  max_file_bytes=settings.max_file_bytes
)
conversion_manager = ConversionManager(
  fetcher=file_fetcher,
  engine_factory=build_engine,
  throttle=settings.throttle_policy(),
  size_limit=settings.batch_size_limit,
  group_by_priority=settings.group_by_priority,
  fallback_excerpt_chars=settings.fallback_excerpt_chars,
  event_logger=event_logger
)
repository_exporter = RepositoryExporter(
  github_client,
  window_size=settings.upload_window_size,
  window_delay_seconds=settings.upload_window_delay_seconds,
  init_delay_seconds=settings.repo_init_delay_seconds
)
