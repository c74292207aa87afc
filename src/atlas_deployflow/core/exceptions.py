"""
Atlas DeployFlow — Canonical Exceptions (v1)

Exceções tipadas levantadas por Stages, adapters e pelo SecretProvider.
O Engine as mapeia de forma determinística para `ErrorPayload` usando
o atributo de classe `code`.

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`
- Mensagens são curtas e nunca contêm valores de segredos
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional

from . import errors


@dataclass(frozen=True)
class DeployFlowException(Exception):
    """Base class para exceções internas do Atlas DeployFlow."""

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    code: ClassVar[str] = errors.ENGINE_EXECUTION_ERROR

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> errors.ErrorPayload:
        return errors.ErrorPayload(
            type=self.code,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
        )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StageTimeoutError(DeployFlowException):
    """Stage excedeu o timeout fornecido pelo chamador."""

    code: ClassVar[str] = errors.STAGE_TIMEOUT


@dataclass(frozen=True)
class StageContractError(DeployFlowException):
    """Stage violou seu contrato de inputs/outputs declarados."""

    code: ClassVar[str] = errors.STAGE_CONTRACT_VIOLATION


# ---------------------------------------------------------------------------
# Segredos (sempre FATAL)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SecretError(DeployFlowException):
    """Base das falhas de aquisição/reconciliação de segredos."""

    reason: ClassVar[str] = "SecretError"


@dataclass(frozen=True)
class SecretFetchFailed(SecretError):
    """Erro de transporte/autenticação ao ler o secret store."""

    reason: ClassVar[str] = "FetchFailed"
    code: ClassVar[str] = errors.SECRET_FETCH_FAILED


@dataclass(frozen=True)
class SecretReconcileFailed(SecretError):
    """Erro ao criar/substituir o objeto de segredo de destino."""

    reason: ClassVar[str] = "ReconcileFailed"
    code: ClassVar[str] = errors.SECRET_RECONCILE_FAILED


# ---------------------------------------------------------------------------
# Adapters externos (tratados de forma opaca como "stage falhou")
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StageAdapterError(DeployFlowException):
    """Base das falhas reportadas por colaboradores externos."""


@dataclass(frozen=True)
class BuildError(StageAdapterError):
    code: ClassVar[str] = errors.BUILD_FAILED


@dataclass(frozen=True)
class TestError(StageAdapterError):
    __test__ = False  # evita coleta pelo pytest

    code: ClassVar[str] = errors.TEST_FAILED


@dataclass(frozen=True)
class ScanError(StageAdapterError):
    code: ClassVar[str] = errors.SCAN_FAILED


@dataclass(frozen=True)
class UploadError(StageAdapterError):
    code: ClassVar[str] = errors.UPLOAD_FAILED


@dataclass(frozen=True)
class PushError(StageAdapterError):
    code: ClassVar[str] = errors.PUSH_FAILED


@dataclass(frozen=True)
class DeployError(StageAdapterError):
    code: ClassVar[str] = errors.DEPLOY_FAILED
