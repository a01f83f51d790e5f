from typing import Dict, Any

from fastapi import APIRouter

from staxchange.api.globals import settings
from staxchange.conversion.mappings import extension_table

router = APIRouter()

@router.get('/health')
async def health() -> Dict[str, Any]:
  return {
    'status': 'ok',
    'llm_configured': settings.llm_configured,
    'model': settings.openrouter_model
  }

@router.get('/api/targets')
async def supported_targets() -> Dict[str, Any]:
  return {'languages': extension_table()}
