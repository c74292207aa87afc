"""
Atlas DeployFlow — Canonical Error Structures (v1)

Erros são artefatos do contrato operacional: toda falha de Stage termina
como um `ErrorPayload` serializável dentro do `StageOutcome`, permitindo
reconstruir onde e por que uma run parou sem inspecionar logs brutos.

Nenhum stack trace é exposto no payload.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta e objetiva
    - details: dados estruturados para diagnóstico
    - hint: ação sugerida ao operador
    """

    type: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"
STAGE_TIMEOUT = "STAGE_TIMEOUT"
STAGE_CONTRACT_VIOLATION = "STAGE_CONTRACT_VIOLATION"

# Segredos
SECRET_FETCH_FAILED = "SECRET_FETCH_FAILED"
SECRET_RECONCILE_FAILED = "SECRET_RECONCILE_FAILED"

# Adapters externos
BUILD_FAILED = "BUILD_FAILED"
TEST_FAILED = "TEST_FAILED"
SCAN_FAILED = "SCAN_FAILED"
UPLOAD_FAILED = "UPLOAD_FAILED"
PUSH_FAILED = "PUSH_FAILED"
DEPLOY_FAILED = "DEPLOY_FAILED"


def engine_execution_error(
    *,
    stage: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Inspect the stage adapter for the failing stage; no fallback is applied automatically.",
) -> ErrorPayload:
    return ErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=exc_message or "Unexpected failure while executing stage",
        details={
            "stage": stage,
            "exc_type": exc_type,
        },
        hint=hint,
    )


def engine_configuration_error(
    *,
    message: str = "Invalid stage configuration",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Review the stage descriptor and its declared inputs/outputs.",
) -> ErrorPayload:
    return ErrorPayload(
        type=ENGINE_CONFIGURATION_ERROR,
        message=message,
        details=dict(details or {}),
        hint=hint,
    )
