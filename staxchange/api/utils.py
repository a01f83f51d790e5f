from typing import Any, Dict, List, Optional

from staxchange.conversion.models import ConversionResult, ConvertedFile, ConversionSummary


def serialize_files(files: List[ConvertedFile]) -> List[Dict[str, Any]]:
  return [item.as_dict() for item in files]


def serialize_stats(summary: Optional[ConversionSummary]) -> Optional[Dict[str, Any]]:
  if not summary:
    return None
  return summary.as_dict()


def serialize_result(result: ConversionResult) -> Dict[str, Any]:
  payload: Dict[str, Any] = {'files': serialize_files(result.files)}
  if result.message:
    payload['message'] = result.message
  stats = serialize_stats(result.summary)
  if stats:
    payload['stats'] = stats
  if result.warnings:
    payload['warnings'] = result.warnings.as_dict()
  return payload
