# src/atlas_deployflow/core/pipeline/types.py
"""
Tipos canônicos do pipeline do Atlas DeployFlow.

Componentes principais:
    - FailurePolicy  → FATAL (aborta a run) ou ADVISORY (apenas registra)
    - StageStatus    → estados finais de um Stage (SUCCESS, SKIPPED, FAILED)
    - RunStatus      → status final da run
    - RunState       → máquina de estados da run
    - StageOutcome   → resultado imutável de um Stage
    - PipelineResult → resultado imutável e finalizado de uma run

Invariantes:
    - Enums possuem valores textuais estáveis (persistidos no Manifest)
    - StageOutcome e PipelineResult nunca são alterados após criados
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from atlas_deployflow.core.errors import ErrorPayload


class FailurePolicy(str, Enum):
    """
    Política aplicada quando um Stage falha.

    - FATAL: a run termina imediatamente como FAILED (fail-fast). É o
      padrão e é obrigatório para Stages cujo output é consumido adiante.
    - ADVISORY: a falha é registrada e a execução continua.
    """

    FATAL = "fatal"
    ADVISORY = "advisory"


class StageStatus(str, Enum):
    """Estados finais de um Stage; estados transitórios não pertencem a este enum."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class RunStatus(str, Enum):
    """
    Status final reportado para a run.

    - SUCCESS: todos os Stages executados tiveram sucesso
    - FAILED: ao menos um Stage FATAL falhou (sempre prevalece)
    - FAILED_ADVISORY: apenas falhas ADVISORY e a run foi até o fim
    - CANCELLED: cancelamento observado antes de algum Stage
    """

    SUCCESS = "success"
    FAILED = "failed"
    FAILED_ADVISORY = "failed_advisory"
    CANCELLED = "cancelled"


class RunState(str, Enum):
    """Máquina de estados: NOT_STARTED → RUNNING → {SUCCEEDED, FAILED, CANCELLED}."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StageOutcome:
    """Resultado de um Stage, na ordem de execução."""

    name: str
    status: StageStatus
    duration_ms: int = 0
    message: str = ""
    policy: FailurePolicy = FailurePolicy.FATAL
    outputs: Tuple[str, ...] = ()
    error: Optional[ErrorPayload] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "duration_ms": self.duration_ms,
            "message": self.message,
            "policy": self.policy.value,
            "outputs": list(self.outputs),
            "error": self.error.to_dict() if self.error is not None else None,
        }


@dataclass(frozen=True)
class PipelineResult:
    """
    Resultado finalizado de uma run.

    Enumera o desfecho de **todos** os Stages declarados, em ordem de
    execução, permitindo reconstruir exatamente onde e por que a run parou.
    """

    run_id: str
    status: RunStatus
    outcomes: Tuple[StageOutcome, ...]
    started_at: datetime
    finished_at: datetime
    config_hash: Optional[str] = None
    events: Tuple[Dict[str, Any], ...] = ()
    manifest: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.SUCCESS

    @property
    def failed_stages(self) -> Tuple[str, ...]:
        return tuple(o.name for o in self.outcomes if o.status == StageStatus.FAILED)

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(o.name for o in self.outcomes)

    def outcome(self, name: str) -> StageOutcome:
        for o in self.outcomes:
            if o.name == name:
                return o
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "config_hash": self.config_hash,
            "stages": [o.to_dict() for o in self.outcomes],
        }
