# src/atlas_deployflow/core/config/merge.py
"""
Utilitário canônico de deep-merge.

A mesma política é usada para resolver a configuração efetiva
(base → overlay → runtime) e para compor os values de deploy
(chart defaults → overlay → fatos dinâmicos).

Política de merge (v1):
    - mapa + mapa          → merge recursivo por chave
    - sequência no override → sobrescrita total (sem concatenação)
    - escalar no override   → sobrescrita direta
    - mapa vs não-mapa      → MergeConflictError

Invariantes:
    - Nenhum input é mutado
    - Chaves não sobrescritas são preservadas
    - merge_layers(a, b, c) == deep_merge(deep_merge(a, b), c)
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, Mapping

from .errors import MergeConflictError


def _thaw(value: Any) -> Any:
    """Copia profunda que converte Mappings/tuplas read-only em dict/list."""
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(v) for v in value]
    return deepcopy(value)


def deep_merge(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
    *,
    _path: str = "",
) -> Dict[str, Any]:
    """
    Realiza um deep-merge determinístico entre dois mapas.

    Args:
        base: Camada de menor precedência.
        override: Camada de maior precedência.

    Returns:
        Dict[str, Any]: Novo dicionário resultante (inputs intactos).

    Raises:
        MergeConflictError: Se uma chave for mapa em uma camada e
            não-mapa na outra, ou se algum dos lados não for um mapa.
    """
    if not isinstance(base, Mapping) or not isinstance(override, Mapping):
        raise MergeConflictError(
            f"Deep-merge requires mappings at '{_path or '<root>'}', got: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = _thaw(base)

    for key, override_value in override.items():
        path = f"{_path}.{key}" if _path else str(key)

        if key not in result:
            result[key] = _thaw(override_value)
            continue

        base_value = result[key]
        base_is_map = isinstance(base_value, Mapping)
        override_is_map = isinstance(override_value, Mapping)

        if base_is_map and override_is_map:
            result[key] = deep_merge(base_value, override_value, _path=path)
            continue

        # None em qualquer lado não é conflito: o override vence
        if base_is_map != override_is_map and base_value is not None and override_value is not None:
            raise MergeConflictError(
                f"Type conflict at '{path}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}"
            )

        # sequência ou escalar -> sobrescrita total
        result[key] = _thaw(override_value)

    return result


def merge_layers(*layers: Mapping[str, Any]) -> Dict[str, Any]:
    """Aplica `deep_merge` da esquerda para a direita (última camada vence)."""
    result: Dict[str, Any] = {}
    for layer in layers:
        result = deep_merge(result, layer or {})
    return result
