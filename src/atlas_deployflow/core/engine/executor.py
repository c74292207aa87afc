# src/atlas_deployflow/core/engine/executor.py
"""
StageExecutor — execução sequencial do pipeline.

Máquina de estados da run:  NOT_STARTED → RUNNING → {SUCCEEDED, FAILED, CANCELLED}
Máquina de estados do Stage: PENDING → (SKIPPED | RUNNING → (SUCCEEDED | FAILED))

Regras de execução:
- Stages rodam estritamente na ordem de declaração, um por vez.
- Antes de cada Stage: cancelamento → predicado `enabled(config)`.
  Predicado falso leva o Stage direto a SKIPPED, sem efeitos colaterais.
- Falha FATAL: a run termina como FAILED e os Stages restantes ficam
  SKIPPED. Falha ADVISORY: registrada, a execução continua; a run termina
  como FAILED_ADVISORY se nenhuma falha FATAL ocorrer depois.
- Outputs são write-once no PipelineContext; o Stage devolve exatamente
  as chaves declaradas.
- Exceções viram `ErrorPayload` (sem stack trace) no StageOutcome.
- Timeout (Stage ou `engine.stage_timeout_s`) é falha do Stage; a chamada
  em voo não é interrompida, seu resultado tardio é descartado.
- Sem retry: uma tentativa por Stage por run.
"""

from __future__ import annotations

import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from atlas_deployflow import __version__
from atlas_deployflow.core.config.effective import EffectiveConfig
from atlas_deployflow.core.config.errors import InvalidConfigValueError
from atlas_deployflow.core.errors import (
    ErrorPayload,
    engine_configuration_error,
    engine_execution_error,
)
from atlas_deployflow.core.exceptions import (
    DeployFlowException,
    StageContractError,
    StageTimeoutError,
)
from atlas_deployflow.core.pipeline.cancellation import CancellationToken
from atlas_deployflow.core.pipeline.context import OutputAlreadyWrittenError, PipelineContext
from atlas_deployflow.core.pipeline.stage import Stage, StageCall
from atlas_deployflow.core.pipeline.types import (
    FailurePolicy,
    PipelineResult,
    RunState,
    RunStatus,
    StageOutcome,
    StageStatus,
)
from atlas_deployflow.core.traceability.manifest import (
    RunManifest,
    add_event,
    create_manifest,
    run_finished,
    stage_finished,
    stage_skipped,
    stage_started,
)

from .planner import plan_execution

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _positive_timeout(path: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidConfigValueError(path, value, "a positive number of seconds")
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise InvalidConfigValueError(path, value, "a positive number of seconds") from None
    if not timeout > 0:
        raise InvalidConfigValueError(path, value, "a positive number of seconds")
    return timeout


_FINAL_STATE = {
    RunStatus.SUCCESS: RunState.SUCCEEDED,
    RunStatus.FAILED_ADVISORY: RunState.SUCCEEDED,
    RunStatus.FAILED: RunState.FAILED,
    RunStatus.CANCELLED: RunState.CANCELLED,
}


class StageExecutor:
    """
    Executor genérico de Stages.

    Uma instância pode executar várias runs (inclusive em threads
    distintas): cada chamada a `run` cria seu próprio PipelineContext,
    Manifest e PipelineResult.
    """

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        cancel_token: Optional[CancellationToken] = None,
        default_timeout_s: Optional[float] = None,
    ):
        self.clock: Clock = clock or _utc_now
        self.cancel_token = cancel_token
        self.default_timeout_s = (
            _positive_timeout("default_timeout_s", default_timeout_s) if default_timeout_s is not None else None
        )

    # ------------------------------------------------------------------
    # Guardrails: exceção -> ErrorPayload
    # ------------------------------------------------------------------

    def _exception_to_error(self, exc: BaseException, stage: Stage, ctx: PipelineContext) -> ErrorPayload:
        if isinstance(exc, DeployFlowException):
            payload = exc.to_payload()
            details = dict(payload.details)
            details.setdefault("stage", stage.name)
            return ErrorPayload(
                type=payload.type,
                message=ctx.redact(payload.message) or "Stage failed",
                details=ctx.redact(details),
                hint=payload.hint,
            )

        if isinstance(exc, OutputAlreadyWrittenError):
            return engine_configuration_error(
                message=str(exc),
                details={"stage": stage.name},
            )

        return engine_execution_error(
            stage=stage.name,
            exc_type=exc.__class__.__name__,
            exc_message=ctx.redact(str(exc)) or None,
        )

    # ------------------------------------------------------------------
    # Contrato de inputs/outputs
    # ------------------------------------------------------------------

    def _resolve_inputs(self, stage: Stage, ctx: PipelineContext) -> Dict[str, Any]:
        missing = [k for k in stage.inputs if not ctx.has(k)]
        if missing:
            raise StageContractError(
                message=f"Stage '{stage.name}' is missing inputs: {', '.join(missing)}",
                details={"missing_inputs": missing},
                hint="An upstream stage that produces these keys was skipped or failed.",
            )
        return {k: ctx.get(k) for k in stage.inputs}

    def _check_outputs(self, stage: Stage, produced: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        if produced is None:
            produced = {}
        if not isinstance(produced, Mapping):
            raise StageContractError(
                message=f"Stage '{stage.name}' must return a mapping of outputs",
                details={"received": type(produced).__name__},
            )

        declared = set(stage.outputs)
        missing = sorted(declared - set(produced))
        undeclared = sorted(set(produced) - declared)
        if missing or undeclared:
            raise StageContractError(
                message=f"Stage '{stage.name}' outputs do not match its declaration",
                details={"missing_outputs": missing, "undeclared_outputs": undeclared},
                hint="Return exactly the keys listed in Stage.outputs.",
            )
        return dict(produced)

    def _configured_timeout(self, config: EffectiveConfig) -> Optional[float]:
        """
        Limite padrão da run (`engine.stage_timeout_s`), validado antes do
        primeiro Stage com a mesma regra de `Stage.timeout_s`.

        Raises:
            InvalidConfigValueError: Valor não numérico ou não positivo.
        """
        value = config.get_path("engine.stage_timeout_s")
        if value is None:
            return self.default_timeout_s
        return _positive_timeout("engine.stage_timeout_s", value)

    @staticmethod
    def _timeout_for(stage: Stage, run_default: Optional[float]) -> Optional[float]:
        return stage.timeout_s if stage.timeout_s is not None else run_default

    def _invoke(self, stage: Stage, call: StageCall, timeout: Optional[float]) -> Any:
        if timeout is None:
            return stage.action(call)

        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"stage-{stage.name}")
        try:
            future = pool.submit(stage.action, call)
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError:
                if future.done():
                    raise
                future.cancel()
                raise StageTimeoutError(
                    message=f"Stage '{stage.name}' exceeded its timeout of {timeout:g}s",
                    details={"timeout_s": timeout},
                    hint="Raise the stage timeout or investigate the external collaborator.",
                )
        finally:
            pool.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------

    def _skip(
        self,
        stage: Stage,
        reason: str,
        ctx: PipelineContext,
        manifest: RunManifest,
    ) -> StageOutcome:
        stage_skipped(manifest, stage=stage.name, ts=self.clock(), reason=reason)
        ctx.log(stage=stage.name, level="info", message="stage skipped", reason=reason)
        return StageOutcome(
            name=stage.name,
            status=StageStatus.SKIPPED,
            message=reason,
            policy=stage.policy,
        )

    def _fail(
        self,
        stage: Stage,
        error: ErrorPayload,
        ctx: PipelineContext,
        manifest: RunManifest,
        duration_ms: Optional[int] = None,
    ) -> StageOutcome:
        stage_finished(
            manifest,
            stage=stage.name,
            ts=self.clock(),
            status=StageStatus.FAILED.value,
            message=error.message,
            error=error.to_dict(),
        )
        ctx.log(
            stage=stage.name,
            level="error" if stage.policy == FailurePolicy.FATAL else "warning",
            message="stage failed",
            error_type=error.type,
            error_message=error.message,
        )
        if stage.policy == FailurePolicy.ADVISORY:
            ctx.add_warning(stage=stage.name, message=error.message)
        return StageOutcome(
            name=stage.name,
            status=StageStatus.FAILED,
            duration_ms=duration_ms,
            message=error.message,
            policy=stage.policy,
            error=error,
        )

    def _execute(
        self,
        stage: Stage,
        ctx: PipelineContext,
        manifest: RunManifest,
        run_timeout: Optional[float],
    ) -> StageOutcome:
        stage_started(manifest, stage=stage.name, policy=stage.policy.value, ts=self.clock())
        ctx.log(stage=stage.name, level="info", message="stage started", policy=stage.policy.value)
        t0 = time.perf_counter()

        try:
            inputs = self._resolve_inputs(stage, ctx)
            timeout = self._timeout_for(stage, run_timeout)
            call = StageCall(
                run_id=ctx.run_id,
                stage=stage.name,
                config=ctx.config,
                inputs=inputs,
                timeout_s=timeout,
                _log=ctx.log,
                _mark_sensitive=ctx.mark_sensitive,
            )
            produced = self._invoke(stage, call, timeout)
            outputs = self._check_outputs(stage, produced)
            ctx.record_outputs(stage.name, outputs)

        except Exception as exc:
            duration_ms = int((time.perf_counter() - t0) * 1000)
            return self._fail(stage, self._exception_to_error(exc, stage, ctx), ctx, manifest, duration_ms)

        duration_ms = int((time.perf_counter() - t0) * 1000)
        stage_finished(
            manifest,
            stage=stage.name,
            ts=self.clock(),
            status=StageStatus.SUCCESS.value,
            message="completed",
        )
        ctx.log(
            stage=stage.name,
            level="info",
            message="stage succeeded",
            outputs=sorted(outputs),
            duration_ms=duration_ms,
        )
        return StageOutcome(
            name=stage.name,
            status=StageStatus.SUCCESS,
            duration_ms=duration_ms,
            message="completed",
            policy=stage.policy,
            outputs=tuple(stage.outputs),
        )

    def _is_enabled(self, stage: Stage, config: EffectiveConfig) -> bool:
        return bool(stage.enabled(config))

    def run(
        self,
        stages: Sequence[Stage],
        config: EffectiveConfig,
        *,
        run_id: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PipelineResult:
        """
        Executa o pipeline uma vez e devolve o resultado finalizado.

        Raises:
            PipelineAssemblyError: Declaração inválida (antes de qualquer Stage).
            InvalidConfigValueError: `engine.stage_timeout_s` inválido (antes
                de qualquer Stage).
        """
        ordered = plan_execution(stages)
        run_timeout = self._configured_timeout(config)
        token = cancel_token or self.cancel_token

        started_at = self.clock()
        ctx = PipelineContext(
            run_id=run_id or uuid.uuid4().hex,
            created_at=started_at,
            config=config,
            meta=dict(meta or {}),
        )
        environment = config.environment.value if config.environment is not None else None
        manifest = create_manifest(
            run_id=ctx.run_id,
            started_at=started_at,
            deployflow_version=__version__,
            config_hash=config.config_hash,
            environment=environment,
        )

        ctx.state = RunState.RUNNING
        add_event(manifest, event_type="run_started", ts=started_at, payload={"stages": len(ordered)})
        ctx.log(stage=None, level="info", message="run started", stages=len(ordered), environment=environment)

        outcomes: List[StageOutcome] = []
        aborted_by: Optional[str] = None
        cancelled = False
        advisory_failed = False

        for stage in ordered:
            if aborted_by is not None:
                outcomes.append(self._skip(stage, f"not executed: run aborted by stage '{aborted_by}'", ctx, manifest))
                continue

            if cancelled or (token is not None and token.cancelled):
                cancelled = True
                reason = token.reason if token is not None else None
                outcomes.append(self._skip(stage, f"not executed: run cancelled ({reason})", ctx, manifest))
                continue

            try:
                enabled = self._is_enabled(stage, config)
            except Exception as exc:
                error = engine_configuration_error(
                    message=f"Enabled predicate of stage '{stage.name}' raised {exc.__class__.__name__}",
                    details={"stage": stage.name, "reason": ctx.redact(str(exc))},
                )
                outcome = self._fail(stage, error, ctx, manifest)
            else:
                if not enabled:
                    outcomes.append(self._skip(stage, "disabled by configuration", ctx, manifest))
                    continue
                outcome = self._execute(stage, ctx, manifest, run_timeout)

            outcomes.append(outcome)
            if outcome.status == StageStatus.FAILED:
                if stage.policy == FailurePolicy.FATAL:
                    aborted_by = stage.name
                else:
                    advisory_failed = True

        if aborted_by is not None:
            status = RunStatus.FAILED
        elif cancelled:
            status = RunStatus.CANCELLED
        elif advisory_failed:
            status = RunStatus.FAILED_ADVISORY
        else:
            status = RunStatus.SUCCESS

        finished_at = self.clock()
        ctx.state = _FINAL_STATE[status]
        run_finished(manifest, ts=finished_at, status=status.value)
        ctx.log(stage=None, level="info", message="run finished", status=status.value)

        return PipelineResult(
            run_id=ctx.run_id,
            status=status,
            outcomes=tuple(outcomes),
            started_at=started_at,
            finished_at=finished_at,
            config_hash=config.config_hash,
            events=tuple(dict(e) for e in ctx.events),
            manifest=manifest.to_dict(),
        )
