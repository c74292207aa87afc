# src/atlas_deployflow/secrets/types.py
"""Tipos do domínio de segredos."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from atlas_deployflow.core.config.effective import EffectiveConfig


@dataclass(frozen=True)
class SecretRef:
    """Identidade de um objeto de segredo de destino (namespace/name)."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class SecretSpec:
    """
    Declaração do que reconciliar em uma run.

    `enabled` vem da configuração efetiva (`secrets.enabled`) e é avaliado
    antes de qualquer chamada externa.
    """

    enabled: bool
    store_path: Optional[str] = None
    destination: Optional[SecretRef] = None

    @classmethod
    def from_config(cls, config: EffectiveConfig) -> "SecretSpec":
        enabled = config.get_flag("secrets.enabled", False)
        if not enabled:
            return cls(enabled=False)

        store_path = config.get_path("secrets.store_path")
        name = config.get_path("secrets.destination") or config.get_path("service.name")
        namespace = config.get_path("secrets.namespace") or config.get_path("deploy.namespace")
        if not store_path or not name or not namespace:
            raise ValueError(
                "secrets.enabled requires secrets.store_path and a destination "
                "(secrets.destination / deploy.namespace)"
            )
        return cls(
            enabled=True,
            store_path=str(store_path),
            destination=SecretRef(namespace=str(namespace), name=str(name)),
        )


class _SecretData(dict):
    """dict cujo repr nunca revela valores."""

    def __repr__(self) -> str:
        return f"<{len(self)} secret keys: {', '.join(sorted(self))}>"


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"Secret values must be bytes or str, got: {type(value).__name__}")


@dataclass(frozen=True)
class SecretBundle:
    """
    Conjunto de chaves/valores de segredo buscado para uma run.

    Mantido apenas em memória pela thread da run; `repr` mostra somente
    as chaves e as referências de origem/destino.
    """

    data: Mapping[str, bytes] = field(repr=False)
    source: str = ""
    destination: Optional[SecretRef] = None

    def __post_init__(self) -> None:
        frozen = MappingProxyType(_SecretData({str(k): _as_bytes(v) for k, v in self.data.items()}))
        object.__setattr__(self, "data", frozen)

    @property
    def keys(self) -> tuple:
        return tuple(sorted(self.data))

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"SecretBundle(source={self.source!r}, destination={str(self.destination)!r}, keys={list(self.keys)!r})"


class ReconcileStatus(str, Enum):
    SKIPPED = "skipped"
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class SecretReconcileResult:
    """Resultado observável da reconciliação: status e contagens, nunca valores."""

    status: ReconcileStatus
    destination: Optional[SecretRef] = None
    keys_reconciled: int = 0
    keys_removed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "destination": str(self.destination) if self.destination is not None else None,
            "keys_reconciled": self.keys_reconciled,
            "keys_removed": self.keys_removed,
        }
