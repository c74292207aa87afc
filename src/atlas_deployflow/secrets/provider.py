# src/atlas_deployflow/secrets/provider.py
"""
SecretProvider — busca um bundle e reconcilia o objeto de destino.

Contrato:
    reconcile(spec, store) -> SecretReconcileResult | SecretError

Regras:
    - spec desabilitado → SKIPPED, sem nenhuma chamada externa
    - qualquer erro do store → SecretFetchFailed (sempre FATAL)
    - destino inexistente → create; existente → replace com o conjunto
      completo de chaves (chaves removidas na origem somem no destino)
    - exatamente um objeto de destino é escrito por run
    - mensagens de erro carregam path/destino e o tipo da exceção, nunca
      o texto da exceção original (que pode ecoar valores)
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from atlas_deployflow.core.exceptions import SecretFetchFailed, SecretReconcileFailed

from .store import SecretStore, SecretTarget
from .types import ReconcileStatus, SecretBundle, SecretReconcileResult, SecretSpec

LogFn = Callable[..., None]


class SecretProvider:
    def __init__(
        self,
        target: SecretTarget,
        *,
        log: Optional[LogFn] = None,
        mark_sensitive: Optional[Callable[..., None]] = None,
    ):
        self.target = target
        self._log = log
        self._mark_sensitive = mark_sensitive

    def _emit(self, message: str, **extra: Any) -> None:
        if self._log is not None:
            self._log(message, **extra)

    def fetch(
        self,
        spec: SecretSpec,
        store: SecretStore,
        credentials: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> SecretBundle:
        try:
            bundle = store.fetch(spec.store_path, credentials, timeout=timeout)
        except Exception as exc:
            raise SecretFetchFailed(
                message=f"Failed to fetch secret bundle from '{spec.store_path}'",
                details={"store_path": spec.store_path, "exc_type": exc.__class__.__name__},
                hint="Check secret store reachability and the pipeline credentials.",
            ) from exc

        if not isinstance(bundle, SecretBundle):
            raise SecretFetchFailed(
                message=f"Secret store returned an invalid bundle for '{spec.store_path}'",
                details={"store_path": spec.store_path, "received": type(bundle).__name__},
            )
        if self._mark_sensitive is not None:
            self._mark_sensitive(*bundle.data.values())
        return SecretBundle(data=bundle.data, source=spec.store_path, destination=spec.destination)

    def reconcile(
        self,
        spec: SecretSpec,
        store: SecretStore,
        credentials: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> SecretReconcileResult:
        if not spec.enabled:
            self._emit("secret management disabled; nothing reconciled")
            return SecretReconcileResult(status=ReconcileStatus.SKIPPED)

        bundle = self.fetch(spec, store, credentials, timeout=timeout)
        ref = spec.destination
        data = dict(bundle.data)

        try:
            current = self.target.read(ref, timeout=timeout)
            if current is None:
                self.target.create(ref, data, timeout=timeout)
                status = ReconcileStatus.CREATED
                removed = 0
            else:
                self.target.replace(ref, data, timeout=timeout)
                status = ReconcileStatus.UPDATED
                removed = len(set(current) - set(data))
        except Exception as exc:
            raise SecretReconcileFailed(
                message=f"Failed to reconcile secret '{ref}'",
                details={"destination": str(ref), "exc_type": exc.__class__.__name__},
                hint="Check permissions on the destination namespace.",
            ) from exc

        self._emit(
            "secret reconciled",
            destination=str(ref),
            status=status.value,
            keys_reconciled=len(data),
            keys_removed=removed,
        )
        return SecretReconcileResult(
            status=status,
            destination=ref,
            keys_reconciled=len(data),
            keys_removed=removed,
        )
