# src/atlas_deployflow/orchestrator/stages.py
"""
Catálogo padrão de Stages de entrega.

Cada função `*_stage` devolve um descritor `Stage` cuja action chama um
adapter externo e traduz seu resultado em outputs de contexto. Novos
Stages opcionais podem ser inseridos na lista de `build_default_stages`
sem tocar no Engine.

Ordem padrão:
    build → test → quality_gate → artifact.upload → image.build →
    image.scan → image.push → secrets.reconcile → deploy

Políticas:
    - test:         ADVISORY (FATAL se `test.blocking`)
    - quality_gate: FATAL se `quality_gate.blocking` (padrão), senão ADVISORY
    - image.scan:   FATAL se `image_scan.blocking` (padrão), senão ADVISORY
    - demais:       FATAL
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from atlas_deployflow.adapters.protocols import (
    ArtifactStoreAdapter,
    BuildAdapter,
    DeployAdapter,
    ImageAdapter,
    PipelineAdapters,
    QualityGateAdapter,
    RegistryAdapter,
    TestAdapter,
)
from atlas_deployflow.core.config.effective import EffectiveConfig
from atlas_deployflow.core.exceptions import BuildError, DeployError, ScanError, TestError
from atlas_deployflow.core.pipeline.stage import Stage, StageCall, config_flag, stage_toggle
from atlas_deployflow.core.pipeline.types import FailurePolicy
from atlas_deployflow.deploy.image import ImageReference
from atlas_deployflow.deploy.values import DynamicFacts, ValueComposer
from atlas_deployflow.secrets.provider import SecretProvider
from atlas_deployflow.secrets.store import SecretStore
from atlas_deployflow.secrets.types import SecretSpec

# Chaves de contexto
ARTIFACT_REF = "artifact_ref"
COVERAGE_REPORT = "coverage_report"
TESTS_PASSED = "tests_passed"
QUALITY_REPORT = "quality_report"
STORED_PATH = "stored_path"
IMAGE_REF = "image_ref"
IMAGE_SCAN_REPORT = "image_scan_report"
PUSHED_REF = "pushed_ref"
SECRET_RESULT = "secret_result"
DEPLOYMENT_VALUES = "deployment_values"
RELEASE_STATUS = "release_status"

secrets_enabled = config_flag("secrets.enabled", default=False)


def _policy(config: EffectiveConfig, path: str, default_blocking: bool) -> FailurePolicy:
    blocking = config.get_flag(path, default_blocking)
    return FailurePolicy.FATAL if blocking else FailurePolicy.ADVISORY


def source_ref(config: EffectiveConfig) -> str:
    repository = config.get_path("source.repository")
    branch = config.get_path("source.branch")
    return f"{repository}@{branch}" if branch else str(repository)


def build_id(config: EffectiveConfig, run_id: str) -> str:
    return str(config.get_path("build.id") or run_id)


def image_tag(config: EffectiveConfig, run_id: str) -> str:
    tag = config.get_path("image.tag") or config.get_path("release.version")
    return str(tag) if tag else build_id(config, run_id)


def image_reference(config: EffectiveConfig, run_id: str) -> ImageReference:
    """Referência alvo da imagem: `image.registry` / `image.repository` (ou o serviço) : tag."""
    repository = config.get_path("image.repository") or config.get_path("service.name")
    return ImageReference(
        registry=str(config.get_path("image.registry") or ""),
        repository=str(repository),
        tag=image_tag(config, run_id),
    )


def artifact_coordinates(config: EffectiveConfig, run_id: str) -> Dict[str, str]:
    service = str(config.get_path("service.name"))
    return {
        "group": str(config.get_path("artifact.group") or service),
        "name": str(config.get_path("artifact.name") or service),
        "version": str(config.get_path("release.version") or build_id(config, run_id)),
    }


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def build_stage(adapter: BuildAdapter) -> Stage:
    def _run(call: StageCall) -> Mapping[str, Any]:
        ref = source_ref(call.config)
        out = adapter.build(ref, timeout=call.timeout_s)
        if not out.artifact_ref:
            raise BuildError(message="Build produced no artifact reference", details={"source_ref": ref})
        call.log("artifact built", artifact_ref=out.artifact_ref)
        return {ARTIFACT_REF: out.artifact_ref}

    return Stage(
        name="build",
        action=_run,
        outputs=(ARTIFACT_REF,),
        enabled=stage_toggle("build"),
        description="Compile and package the service source.",
    )


def run_tests_stage(adapter: TestAdapter, config: EffectiveConfig) -> Stage:
    def _run(call: StageCall) -> Mapping[str, Any]:
        report = adapter.test(call.inputs[ARTIFACT_REF], timeout=call.timeout_s)
        if not report.passed:
            raise TestError(
                message="Test suite reported failures",
                details={"coverage_report": dict(report.coverage_report)},
            )
        return {COVERAGE_REPORT: dict(report.coverage_report), TESTS_PASSED: True}

    return Stage(
        name="test",
        action=_run,
        inputs=(ARTIFACT_REF,),
        outputs=(COVERAGE_REPORT, TESTS_PASSED),
        policy=_policy(config, "test.blocking", False),
        enabled=stage_toggle("test"),
    )


def quality_gate_stage(adapter: QualityGateAdapter, config: EffectiveConfig) -> Stage:
    def _run(call: StageCall) -> Mapping[str, Any]:
        policy = call.config.get_path("quality_gate.policy") or {}
        report = adapter.scan(call.inputs[ARTIFACT_REF], policy, timeout=call.timeout_s)
        if not report.passed:
            raise ScanError(
                message="Quality gate rejected the artifact",
                details={"report_ref": report.report_ref},
            )
        return {QUALITY_REPORT: report.report_ref}

    return Stage(
        name="quality_gate",
        action=_run,
        inputs=(ARTIFACT_REF,),
        outputs=(QUALITY_REPORT,),
        policy=_policy(config, "quality_gate.blocking", True),
        enabled=stage_toggle("quality_gate"),
    )


def artifact_upload_stage(adapter: ArtifactStoreAdapter) -> Stage:
    def _run(call: StageCall) -> Mapping[str, Any]:
        coordinates = artifact_coordinates(call.config, call.run_id)
        out = adapter.upload(call.inputs[ARTIFACT_REF], coordinates, timeout=call.timeout_s)
        call.log("artifact uploaded", stored_path=out.stored_path, **coordinates)
        return {STORED_PATH: out.stored_path}

    return Stage(
        name="artifact.upload",
        action=_run,
        inputs=(ARTIFACT_REF,),
        outputs=(STORED_PATH,),
        enabled=stage_toggle("artifact.upload"),
    )


def image_build_stage(adapter: ImageAdapter) -> Stage:
    def _run(call: StageCall) -> Mapping[str, Any]:
        target = image_reference(call.config, call.run_id)
        out = adapter.build_image(call.inputs[ARTIFACT_REF], str(target), timeout=call.timeout_s)
        return {IMAGE_REF: out.image_ref}

    return Stage(
        name="image.build",
        action=_run,
        inputs=(ARTIFACT_REF,),
        outputs=(IMAGE_REF,),
        enabled=stage_toggle("image.build"),
    )


def image_scan_stage(adapter: ImageAdapter, config: EffectiveConfig) -> Stage:
    def _run(call: StageCall) -> Mapping[str, Any]:
        threshold = str(call.config.get_path("image_scan.severity_threshold", "HIGH"))
        report = adapter.scan_image(call.inputs[IMAGE_REF], threshold, timeout=call.timeout_s)
        if not report.passed:
            raise ScanError(
                message=f"Image scan found vulnerabilities at or above {threshold}",
                details={"report_ref": report.report_ref, "severity_threshold": threshold},
            )
        return {IMAGE_SCAN_REPORT: report.report_ref}

    return Stage(
        name="image.scan",
        action=_run,
        inputs=(IMAGE_REF,),
        outputs=(IMAGE_SCAN_REPORT,),
        policy=_policy(config, "image_scan.blocking", True),
        enabled=stage_toggle("image.scan"),
    )


def image_push_stage(adapter: RegistryAdapter) -> Stage:
    def _run(call: StageCall) -> Mapping[str, Any]:
        out = adapter.push(call.inputs[IMAGE_REF], timeout=call.timeout_s)
        call.log("image pushed", pushed_ref=out.pushed_ref)
        return {PUSHED_REF: out.pushed_ref}

    return Stage(
        name="image.push",
        action=_run,
        inputs=(IMAGE_REF,),
        outputs=(PUSHED_REF,),
        enabled=stage_toggle("image.push"),
    )


def secrets_stage(
    provider: SecretProvider,
    store: SecretStore,
    credentials: Optional[Mapping[str, Any]] = None,
) -> Stage:
    """Stage de segredos: sempre FATAL; habilitado apenas por `secrets.enabled`."""

    def _run(call: StageCall) -> Mapping[str, Any]:
        spec = SecretSpec.from_config(call.config)
        bound = SecretProvider(provider.target, log=call.log, mark_sensitive=call.mark_sensitive)
        result = bound.reconcile(spec, store, credentials, timeout=call.timeout_s)
        return {SECRET_RESULT: result.to_dict()}

    return Stage(
        name="secrets.reconcile",
        action=_run,
        outputs=(SECRET_RESULT,),
        policy=FailurePolicy.FATAL,
        enabled=stage_toggle("secrets.reconcile", secrets_enabled),
    )


def deploy_stage(
    adapter: DeployAdapter,
    chart_defaults: Optional[Mapping[str, Any]] = None,
    composer: Optional[ValueComposer] = None,
) -> Stage:
    composer = composer or ValueComposer()

    def _run(call: StageCall) -> Mapping[str, Any]:
        cfg = call.config
        facts = DynamicFacts(
            image=ImageReference.parse(call.inputs[PUSHED_REF]),
            build_id=build_id(cfg, call.run_id),
            replicas=cfg.get_path("deploy.replicas"),
            resources=cfg.get_path("deploy.resources") or {},
        )
        values = composer.compose(chart_defaults, cfg.get_path("deploy.values") or {}, facts)

        chart_ref = cfg.get_path("deploy.chart")
        if not chart_ref:
            raise DeployError(message="deploy.chart is not configured", details={})

        status = adapter.deploy(
            str(chart_ref),
            values,
            str(cfg.get_path("deploy.namespace")),
            cfg.get_path("deploy.kube_context"),
            timeout=call.timeout_s,
        )
        call.log("release deployed", release=status.release, status=status.status)
        return {
            DEPLOYMENT_VALUES: values.to_dict(),
            RELEASE_STATUS: {
                "release": status.release,
                "status": status.status,
                "revision": status.revision,
            },
        }

    return Stage(
        name="deploy",
        action=_run,
        inputs=(PUSHED_REF,),
        outputs=(DEPLOYMENT_VALUES, RELEASE_STATUS),
        enabled=stage_toggle("deploy"),
    )


def build_default_stages(
    config: EffectiveConfig,
    adapters: PipelineAdapters,
    *,
    secret_provider: SecretProvider,
    secret_store: SecretStore,
    chart_defaults: Optional[Mapping[str, Any]] = None,
    credentials: Optional[Mapping[str, Any]] = None,
    composer: Optional[ValueComposer] = None,
) -> List[Stage]:
    """Monta a lista ordenada de Stages para a configuração da run."""
    return [
        build_stage(adapters.build),
        run_tests_stage(adapters.test, config),
        quality_gate_stage(adapters.quality_gate, config),
        artifact_upload_stage(adapters.artifact_store),
        image_build_stage(adapters.image),
        image_scan_stage(adapters.image, config),
        image_push_stage(adapters.registry),
        secrets_stage(secret_provider, secret_store, credentials),
        deploy_stage(adapters.deploy, chart_defaults, composer),
    ]
