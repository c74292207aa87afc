# src/atlas_deployflow/core/pipeline/cancellation.py
"""Cancelamento cooperativo, com escopo de run."""

from __future__ import annotations

import threading
from typing import Optional


class CancellationToken:
    """
    Sinal de cancelamento de uma run.

    O Engine consulta o token antes de iniciar cada Stage; um Stage já em
    execução não é interrompido. Pode ser acionado de outra thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason
