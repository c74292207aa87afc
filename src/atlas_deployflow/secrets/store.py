# src/atlas_deployflow/secrets/store.py
"""
Contratos dos colaboradores externos de segredos.

- SecretStore: origem (ex.: Vault, Secrets Manager)
- SecretTarget: destino (ex.: Secret do Kubernetes)

As implementações em memória servem para dry-runs e testes; elas
reproduzem a semântica esperada dos colaboradores reais (create falha se
o objeto existe; replace falha se ele não existe).
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from .types import SecretBundle, SecretRef


@runtime_checkable
class SecretStore(Protocol):
    def fetch(
        self,
        path: str,
        credentials: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> SecretBundle:
        """Busca o bundle em `path`; qualquer erro de transporte/auth é levantado."""
        ...


@runtime_checkable
class SecretTarget(Protocol):
    def read(self, ref: SecretRef, *, timeout: Optional[float] = None) -> Optional[Mapping[str, bytes]]:
        """Retorna as chaves atuais do destino ou None se ele não existe."""
        ...

    def create(self, ref: SecretRef, data: Mapping[str, bytes], *, timeout: Optional[float] = None) -> None:
        ...

    def replace(self, ref: SecretRef, data: Mapping[str, bytes], *, timeout: Optional[float] = None) -> None:
        """Substitui **todo** o conjunto de chaves do destino."""
        ...


class InMemorySecretStore:
    """Secret store em memória, indexado por path."""

    def __init__(self, bundles: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._bundles: Dict[str, Dict[str, Any]] = {
            path: dict(data) for path, data in (bundles or {}).items()
        }
        self.fetch_count = 0

    def put(self, path: str, data: Mapping[str, Any]) -> None:
        self._bundles[path] = dict(data)

    def fetch(
        self,
        path: str,
        credentials: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> SecretBundle:
        self.fetch_count += 1
        if path not in self._bundles:
            raise KeyError(f"no secret bundle at {path}")
        return SecretBundle(data=self._bundles[path], source=path)


class InMemorySecretTarget:
    """Destino em memória com semântica de create/replace estrita."""

    def __init__(self) -> None:
        self._objects: Dict[SecretRef, Dict[str, bytes]] = {}
        self._lock = threading.Lock()
        self.writes = 0

    def read(self, ref: SecretRef, *, timeout: Optional[float] = None) -> Optional[Mapping[str, bytes]]:
        with self._lock:
            current = self._objects.get(ref)
            return dict(current) if current is not None else None

    def create(self, ref: SecretRef, data: Mapping[str, bytes], *, timeout: Optional[float] = None) -> None:
        with self._lock:
            if ref in self._objects:
                raise FileExistsError(f"secret {ref} already exists")
            self._objects[ref] = dict(data)
            self.writes += 1

    def replace(self, ref: SecretRef, data: Mapping[str, bytes], *, timeout: Optional[float] = None) -> None:
        with self._lock:
            if ref not in self._objects:
                raise FileNotFoundError(f"secret {ref} does not exist")
            self._objects[ref] = dict(data)
            self.writes += 1
