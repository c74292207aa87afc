# src/atlas_deployflow/core/config/effective.py
"""
EffectiveConfig — configuração efetiva e imutável de uma run.

A configuração efetiva é produzida pelo `ConfigResolver` e compartilhada,
somente para leitura, com todos os Stages da run. Mapas aninhados são
expostos como `MappingProxyType` e listas como tuplas, de modo que nenhum
Stage consegue alterar a configuração de outro.

Invariantes:
    - Nenhuma mutação é possível após a construção
    - `config_hash` identifica a estrutura de forma determinística
    - `to_dict()` devolve uma cópia mutável independente
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from .environments import Environment
from .errors import InvalidConfigValueError
from .hashing import compute_config_hash
from .merge import _thaw

_MISSING = object()

_TRUE_TEXT = frozenset({"true", "yes", "on", "1"})
_FALSE_TEXT = frozenset({"false", "no", "off", "0"})


def as_flag(value: Any, path: str, default: bool = False) -> bool:
    """Interpreta `value` como booleano; `None` vira `default`."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_TEXT:
            return True
        if text in _FALSE_TEXT:
            return False
    raise InvalidConfigValueError(path, value, "a boolean")


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


class EffectiveConfig(Mapping[str, Any]):
    """Mapa imutável com a configuração resolvida de uma run."""

    __slots__ = ("_data", "_environment", "_hash")

    def __init__(self, data: Mapping[str, Any], environment: Optional[Environment] = None):
        object.__setattr__(self, "_data", _freeze(dict(data)))
        object.__setattr__(self, "_environment", environment)
        object.__setattr__(self, "_hash", compute_config_hash(data))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("EffectiveConfig is immutable")

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        env = self._environment.value if self._environment else None
        return f"EffectiveConfig(environment={env!r}, hash={self._hash[:12]!r})"

    @property
    def environment(self) -> Optional[Environment]:
        return self._environment

    @property
    def config_hash(self) -> str:
        return self._hash

    def get_path(self, path: str, default: Any = None) -> Any:
        """
        Lê um valor por caminho pontuado (ex.: ``"deploy.namespace"``).

        Retorna `default` quando qualquer segmento não existe ou quando um
        segmento intermediário não é um mapa.
        """
        node: Any = self._data
        for part in path.split("."):
            if not isinstance(node, Mapping):
                return default
            node = node.get(part, _MISSING)
            if node is _MISSING:
                return default
        return node

    def get_flag(self, path: str, default: bool = False) -> bool:
        """
        Lê um booleano por caminho pontuado.

        Aceita `bool` e as formas textuais usuais vindas de parâmetros de
        runtime planos ("true"/"false", "yes"/"no", "on"/"off", "1"/"0").

        Raises:
            InvalidConfigValueError: Para qualquer outro valor.
        """
        return as_flag(self.get_path(path), path, default)

    def has_path(self, path: str) -> bool:
        return self.get_path(path, _MISSING) is not _MISSING

    def to_dict(self) -> Dict[str, Any]:
        return _thaw(self._data)
