"""
Cache keys for transformation results.

The fingerprint covers the transformer configuration only, never the content
passed to execute(): a transformer is cached per configuration.
"""

import hashlib
import json
from enum import Enum
from typing import Any, Dict, List, Optional


def _canonical(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


def build_fingerprint(
    transformer_class: str,
    prompt: Optional[str],
    system_prompt: Optional[str] = None,
    provider: Optional[str] = None,
    top_p: Optional[float] = None,
    model: Optional[str] = None,
    tools: Optional[List[Dict[str, Any]]] = None,
    temperature: Optional[float] = None,
) -> str:
    fields = {
        "transformer": transformer_class,
        "prompt": prompt,
        "system_prompt": system_prompt,
        "provider": provider,
        "top_p": top_p,
        "model": model,
        "tools": tools,
        "temperature": temperature,
    }
    filtered = {name: _canonical(value) for name, value in fields.items() if value is not None}
    serialized = json.dumps(filtered, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def build_cache_key(prefix: str, fingerprint: str) -> str:
    return f"{prefix}:{fingerprint}"


def build_content_fetch_key(prefix: str, url: str, options: Optional[Dict[str, Any]] = None) -> str:
    serialized = url + json.dumps(_canonical(options or {}), sort_keys=True, default=str)
    digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()
    return f"{prefix}:content_fetch:{digest}"
