# src/atlas_deployflow/core/config/hashing.py
"""
Hashing canônico de configuração.

O hash representa a identidade estrutural da configuração efetiva de uma
run e é registrado no Manifest para rastreabilidade.

Política de hashing (v1):
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - UTF-8
    - SHA-256 (64 caracteres hexadecimais)
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def compute_config_hash(config: Mapping[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração.

    Aceita `dict` ou qualquer `Mapping` (inclusive `EffectiveConfig`);
    configurações estruturalmente equivalentes produzem o mesmo hash.

    Raises:
        TypeError: Se o objeto fornecido não for um Mapping.
    """
    if not isinstance(config, Mapping):
        raise TypeError(
            f"Config for hashing must be a mapping, got: {type(config).__name__}"
        )

    canonical_json = json.dumps(
        _plain(config),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )

    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
