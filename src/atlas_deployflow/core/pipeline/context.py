# src/atlas_deployflow/core/pipeline/context.py
"""
Contexto de execução de uma run do pipeline.

O `PipelineContext` pertence exclusivamente ao Engine durante uma run:
acumula os outputs de cada Stage (indexados pelo nome do Stage), mantém o
log estruturado de eventos e o estado da run. Nunca é compartilhado entre
runs concorrentes.

Invariantes:
    - Cada chave de output é gravada no máximo uma vez por run
    - Logs sempre incluem `run_id` e `stage`
    - Valores marcados como sensíveis nunca aparecem no log
    - Toda escrita passa por um único writer (lock interno)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set

from atlas_deployflow.core.config.effective import EffectiveConfig

from .types import RunState

REDACTED = "***"


class OutputAlreadyWrittenError(RuntimeError):
    """Tentativa de regravar uma chave de output já produzida na run."""


@dataclass
class PipelineContext:
    """Contexto mutável e isolado de uma run."""

    run_id: str
    created_at: datetime
    config: EffectiveConfig
    meta: Dict[str, Any] = field(default_factory=dict)

    state: RunState = field(default=RunState.NOT_STARTED, init=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    _outputs: Dict[str, Dict[str, Any]] = field(default_factory=dict, init=False, repr=False)
    _owners: Dict[str, str] = field(default_factory=dict, init=False, repr=False)
    _sensitive: Set[str] = field(default_factory=set, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    # -----------------------------
    # Outputs (write-once)
    # -----------------------------
    def record_outputs(self, stage: str, outputs: Mapping[str, Any]) -> None:
        with self._lock:
            for key in outputs:
                if key in self._owners:
                    raise OutputAlreadyWrittenError(
                        f"Output '{key}' already written by stage '{self._owners[key]}'"
                    )
            bucket = self._outputs.setdefault(stage, {})
            for key, value in outputs.items():
                bucket[key] = value
                self._owners[key] = stage

    def has(self, key: str) -> bool:
        return key in self._owners

    def get(self, key: str) -> Any:
        if key not in self._owners:
            raise KeyError(key)
        return self._outputs[self._owners[key]][key]

    def outputs_of(self, stage: str) -> Dict[str, Any]:
        return dict(self._outputs.get(stage, {}))

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def mark_sensitive(self, *values: Any) -> None:
        with self._lock:
            for value in values:
                if isinstance(value, bytes):
                    value = value.decode("utf-8", errors="ignore")
                if isinstance(value, str) and value:
                    self._sensitive.add(value)

    def redact(self, value: Any) -> Any:
        if isinstance(value, str):
            for secret in self._sensitive:
                if secret in value:
                    value = value.replace(secret, REDACTED)
            return value
        if isinstance(value, Mapping):
            return {k: self.redact(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.redact(v) for v in value]
        if isinstance(value, bytes):
            return REDACTED
        return value

    def log(self, *, stage: Optional[str], level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "stage": stage,
            "level": level,
            "message": self.redact(message),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update({k: self.redact(v) for k, v in extra.items()})
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, stage: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(stage, []).append(self.redact(message))
