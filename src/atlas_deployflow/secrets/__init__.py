# src/atlas_deployflow/secrets/__init__.py
"""
Aquisição e reconciliação de segredos.

Fluxo:
    secret store --fetch--> SecretBundle (memória) --reconcile--> objeto de destino

Invariantes:
    - Com `secrets.enabled` falso nada é contatado (resultado SKIPPED)
    - A reconciliação é create-or-update com substituição total das chaves
    - Valores de segredos nunca aparecem em logs, mensagens ou resultados
"""

from .provider import SecretProvider
from .store import InMemorySecretStore, InMemorySecretTarget, SecretStore, SecretTarget
from .types import (
    ReconcileStatus,
    SecretBundle,
    SecretReconcileResult,
    SecretRef,
    SecretSpec,
)

__all__ = [
    "InMemorySecretStore",
    "InMemorySecretTarget",
    "ReconcileStatus",
    "SecretBundle",
    "SecretProvider",
    "SecretReconcileResult",
    "SecretRef",
    "SecretSpec",
    "SecretStore",
    "SecretTarget",
]
