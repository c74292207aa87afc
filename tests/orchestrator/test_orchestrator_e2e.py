# tests/orchestrator/test_orchestrator_e2e.py
"""
Testes end-to-end do PipelineOrchestrator com adapters falsos.

Cenários:
- caminho feliz completo (uat): segredos reconciliados e deploy com values
  compostos a partir de chart defaults, overlay e fatos da run
- ambiente desconhecido ou configuração incompleta: falha antes de
  qualquer chamada externa
- falhas ADVISORY/FATAL em testes, quality gate, scan e segredos
- timeout de Stage vindo da configuração
- valores de segredos nunca aparecem em eventos, Manifest ou erros

Limites explícitos:
    - Não usa colaboradores reais (rede, registry, cluster)
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

import pytest

from atlas_deployflow.core.config import (
    ConfigDefinitions,
    Environment,
    InvalidConfigValueError,
    MissingRequiredConfigError,
    UnknownEnvironmentError,
)
from atlas_deployflow.core.errors import ENGINE_EXECUTION_ERROR, SECRET_FETCH_FAILED, STAGE_TIMEOUT
from atlas_deployflow.core.pipeline import CancellationToken, FailurePolicy, RunStatus, StageStatus
from atlas_deployflow.orchestrator import PipelineOrchestrator
from atlas_deployflow.secrets import InMemorySecretStore, SecretRef
from tests.fixtures.adapters import make_adapters

RUNTIME = {"version": "1.2.0", "build_id": "b-42"}

FULL_JOURNAL = [
    "build",
    "test",
    "quality_gate",
    "artifact.upload",
    "image.build",
    "image.scan",
    "image.push",
    "deploy",
]


@pytest.fixture
def orchestrator_for(config_definitions, secret_store, secret_target, chart_defaults, fixed_clock):
    def _make(adapters, *, definitions=None, store=None):
        return PipelineOrchestrator(
            definitions or config_definitions,
            adapters,
            secret_store=store or secret_store,
            secret_target=secret_target,
            chart_defaults=chart_defaults,
            clock=fixed_clock,
        )

    return _make


def test_full_run_in_uat(orchestrator_for, adapters, journal, secret_store, secret_target):
    result = orchestrator_for(adapters).run("uat", RUNTIME)

    assert result.status is RunStatus.SUCCESS
    assert all(o.status is StageStatus.SUCCESS for o in result.outcomes)
    assert journal == FULL_JOURNAL
    assert result.manifest["run"]["environment"] == "uat"

    assert secret_target.read(SecretRef("orders-uat", "orders-api")) == {
        "DB_PASSWORD": b"uat-pass-123",
        "API_TOKEN": b"uat-token-xyz",
    }

    release = adapters.deploy.releases[0]
    assert release["chart_ref"] == "charts/orders-api"
    assert release["namespace"] == "orders-uat"
    assert release["context"] == "uat-cluster"
    assert release["values"] == {
        "replicaCount": 2,
        "image": {"registry": "registry.example.com", "repository": "platform/orders-api", "tag": "1.2.0"},
        "service": {"type": "ClusterIP", "port": 8080},
        "build": {"id": "b-42"},
    }
    assert adapters.image.tags == ["registry.example.com/platform/orders-api:1.2.0"]
    assert adapters.artifact_store.coordinates == [{"group": "orders-api", "name": "orders-api", "version": "1.2.0"}]


def test_secret_values_never_leak(orchestrator_for, adapters):
    result = orchestrator_for(adapters).run("uat", RUNTIME)
    dump = str(result.events) + str(result.manifest) + str(result.to_dict())
    assert "uat-pass-123" not in dump
    assert "uat-token-xyz" not in dump


def test_dev_skips_disabled_secrets(orchestrator_for, adapters, secret_store):
    result = orchestrator_for(adapters).run("dev", RUNTIME)

    assert result.status is RunStatus.SUCCESS
    skipped = result.outcome("secrets.reconcile")
    assert skipped.status is StageStatus.SKIPPED
    assert skipped.message == "disabled by configuration"
    assert secret_store.fetch_count == 0
    assert adapters.deploy.releases[0]["namespace"] == "orders-dev"


def test_unknown_environment_fails_before_any_stage(orchestrator_for, adapters, journal, secret_store):
    with pytest.raises(UnknownEnvironmentError):
        orchestrator_for(adapters).run("staging", RUNTIME)
    assert journal == []
    assert secret_store.fetch_count == 0


def test_missing_required_config_fails_before_any_stage(orchestrator_for, adapters, journal, environment_overlays):
    definitions = ConfigDefinitions(base={"deploy": {"chart": "c"}}, overlays=environment_overlays)
    with pytest.raises(MissingRequiredConfigError) as exc:
        orchestrator_for(adapters, definitions=definitions).run("dev", {})
    assert exc.value.missing == ("service.name", "source.repository")
    assert journal == []


def test_failing_tests_are_advisory_by_default(orchestrator_for, journal):
    adapters = make_adapters(journal, tests_pass=False)
    result = orchestrator_for(adapters).run("dev", RUNTIME)

    assert result.status is RunStatus.FAILED_ADVISORY
    assert result.outcome("test").status is StageStatus.FAILED
    assert result.outcome("deploy").status is StageStatus.SUCCESS
    assert "deploy" in journal


def test_failing_tests_block_in_prod(orchestrator_for, journal):
    adapters = make_adapters(journal, tests_pass=False)
    result = orchestrator_for(adapters).run("prod", RUNTIME)

    assert result.status is RunStatus.FAILED
    assert result.failed_stages == ("test",)
    assert journal == ["build", "test"]


def test_advisory_test_then_fatal_gate_stops_before_secrets_and_deploy(
    orchestrator_for, journal, secret_store, secret_target
):
    adapters = make_adapters(journal, tests_pass=False, quality_passes=False)
    result = orchestrator_for(adapters).run("uat", RUNTIME)

    assert result.status is RunStatus.FAILED
    assert result.outcome("test").status is StageStatus.FAILED
    assert result.outcome("quality_gate").status is StageStatus.FAILED
    for name in ("secrets.reconcile", "deploy"):
        assert result.outcome(name).status is StageStatus.SKIPPED
        assert result.outcome(name).message == "not executed: run aborted by stage 'quality_gate'"
    assert secret_store.fetch_count == 0
    assert secret_target.writes == 0


def test_image_scan_failure_blocks_deploy(orchestrator_for, journal):
    adapters = make_adapters(journal, image_scan_passes=False)
    result = orchestrator_for(adapters).run("dev", RUNTIME)

    assert result.status is RunStatus.FAILED
    assert result.outcome("image.scan").error.details["severity_threshold"] == "HIGH"
    assert "image.push" not in journal
    assert "deploy" not in journal


def test_non_blocking_image_scan_is_advisory(orchestrator_for, journal, base_config, environment_overlays):
    base_config["image_scan"]["blocking"] = False
    definitions = ConfigDefinitions(base=base_config, overlays=environment_overlays)
    adapters = make_adapters(journal, image_scan_passes=False)

    result = orchestrator_for(adapters, definitions=definitions).run("dev", RUNTIME)
    assert result.status is RunStatus.FAILED_ADVISORY
    assert "deploy" in journal


def test_secret_fetch_failure_is_fatal(orchestrator_for, journal):
    adapters = make_adapters(journal)
    result = orchestrator_for(adapters, store=InMemorySecretStore()).run("uat", RUNTIME)

    assert result.status is RunStatus.FAILED
    assert result.outcome("secrets.reconcile").error.type == SECRET_FETCH_FAILED
    assert result.outcome("deploy").status is StageStatus.SKIPPED
    assert "deploy" not in journal


def test_adapter_error_text_is_redacted(orchestrator_for, journal):
    class LeakyDeploy:
        def deploy(self, chart_ref, values, namespace, context, *, timeout=None):
            raise RuntimeError("helm failed: env DB_PASSWORD=uat-pass-123 rejected")

    adapters = replace(make_adapters(journal), deploy=LeakyDeploy())
    result = orchestrator_for(adapters).run("uat", RUNTIME)

    error = result.outcome("deploy").error
    assert error.type == ENGINE_EXECUTION_ERROR
    assert error.message == "helm failed: env DB_PASSWORD=*** rejected"
    assert "uat-pass-123" not in str(result.events)


def test_stage_timeout_from_runtime_params(orchestrator_for, journal):
    adapters = make_adapters(journal, image_scan_delay_s=1.5)
    result = orchestrator_for(adapters).run("dev", {**RUNTIME, "engine.stage_timeout_s": 0.3})

    assert result.status is RunStatus.FAILED
    assert result.outcome("image.scan").error.type == STAGE_TIMEOUT
    assert result.outcome("deploy").status is StageStatus.SKIPPED


def test_cancelled_run(orchestrator_for, adapters, journal):
    token = CancellationToken()
    token.cancel("release freeze")
    result = orchestrator_for(adapters).run("dev", RUNTIME, cancel_token=token)

    assert result.status is RunStatus.CANCELLED
    assert journal == []


def test_concurrent_runs_are_isolated(orchestrator_for, adapters):
    orchestrator = orchestrator_for(adapters)
    with ThreadPoolExecutor(max_workers=2) as pool:
        dev = pool.submit(orchestrator.run, "dev", RUNTIME)
        prod = pool.submit(orchestrator.run, "prod", RUNTIME)
        results = [dev.result(), prod.result()]

    assert [r.status for r in results] == [RunStatus.SUCCESS, RunStatus.SUCCESS]
    assert results[0].run_id != results[1].run_id
    assert results[0].config_hash != results[1].config_hash


def test_from_directory(config_dir, adapters, secret_store, secret_target):
    orchestrator = PipelineOrchestrator.from_directory(
        config_dir,
        adapters,
        secret_store=secret_store,
        secret_target=secret_target,
    )
    result = orchestrator.run("prod", RUNTIME)
    assert result.status is RunStatus.SUCCESS
    assert secret_target.read(SecretRef("orders-prod", "orders-api")) == {"DB_PASSWORD": b"prod-pass-456"}


@pytest.mark.parametrize("stage", ["artifact.upload", "image.scan", "secrets.reconcile"])
def test_runtime_param_switches_off_dotted_stage(orchestrator_for, adapters, journal, stage):
    result = orchestrator_for(adapters).run("uat", {**RUNTIME, f"stages.{stage}.enabled": False})

    assert result.status is RunStatus.SUCCESS
    assert result.outcome(stage).status is StageStatus.SKIPPED
    assert result.outcome(stage).message == "disabled by configuration"
    assert stage not in journal


def test_textual_false_flags_from_runtime_params(orchestrator_for, journal, secret_store):
    adapters = make_adapters(journal, tests_pass=False, quality_passes=False)
    result = orchestrator_for(adapters).run(
        "prod",
        {**RUNTIME, "secrets.enabled": "false", "test.blocking": "false", "quality_gate.blocking": "no"},
    )

    assert result.status is RunStatus.FAILED_ADVISORY
    assert result.outcome("test").policy is FailurePolicy.ADVISORY
    assert result.outcome("quality_gate").policy is FailurePolicy.ADVISORY
    assert result.outcome("secrets.reconcile").status is StageStatus.SKIPPED
    assert secret_store.fetch_count == 0


def test_unparseable_blocking_flag_fails_before_any_stage(orchestrator_for, adapters, journal):
    with pytest.raises(InvalidConfigValueError) as exc:
        orchestrator_for(adapters).run("dev", {**RUNTIME, "image_scan.blocking": "sometimes"})
    assert exc.value.path == "image_scan.blocking"
    assert journal == []


@pytest.mark.parametrize("timeout", [0, -1, "soon"])
def test_invalid_run_timeout_fails_before_any_stage(orchestrator_for, adapters, journal, timeout):
    with pytest.raises(InvalidConfigValueError):
        orchestrator_for(adapters).run("dev", {**RUNTIME, "engine.stage_timeout_s": timeout})
    assert journal == []


def test_environment_is_validated_once_per_run(orchestrator_for, adapters, monkeypatch):
    orchestrator = orchestrator_for(adapters)
    seen = []
    original = Environment.parse
    monkeypatch.setattr(Environment, "parse", classmethod(lambda cls, name: seen.append(name) or original(name)))

    orchestrator.run("uat", RUNTIME)

    assert seen == ["uat"]
