# tests/core/engine/test_executor_skip_by_config.py
"""
Testes de execução condicional: o predicado `enabled` do Stage é avaliado
contra a EffectiveConfig e um Stage desabilitado vai direto para SKIPPED,
sem efeitos colaterais.
"""

from atlas_deployflow.core.engine import StageExecutor
from atlas_deployflow.core.errors import ENGINE_CONFIGURATION_ERROR
from atlas_deployflow.core.pipeline import FailurePolicy, RunStatus, StageStatus, config_flag


def test_disabled_stage_is_skipped_without_running(make_stage, make_config):
    calls = []
    stages = [
        make_stage("build", calls=calls),
        make_stage("secrets", calls=calls, enabled=config_flag("secrets.enabled")),
        make_stage("deploy", calls=calls),
    ]
    result = StageExecutor().run(stages, make_config({"secrets": {"enabled": False}}))

    assert calls == ["build", "deploy"]
    assert result.status is RunStatus.SUCCESS
    skipped = result.outcome("secrets")
    assert skipped.status is StageStatus.SKIPPED
    assert skipped.message == "disabled by configuration"
    assert result.manifest["stages"]["secrets"]["status"] == "skipped"


def test_enabled_by_flag(make_stage, make_config):
    calls = []
    stages = [make_stage("secrets", calls=calls, enabled=config_flag("secrets.enabled"))]
    StageExecutor().run(stages, make_config({"secrets": {"enabled": True}}))
    assert calls == ["secrets"]


def test_consumer_of_skipped_stage_fails_contract(make_stage, make_config):
    stages = [
        make_stage("push", outputs=["pushed_ref"], enabled=lambda cfg: False),
        make_stage("deploy", inputs=["pushed_ref"]),
    ]
    result = StageExecutor().run(stages, make_config({}))

    assert result.status is RunStatus.FAILED
    assert result.outcome("deploy").error.details["missing_inputs"] == ["pushed_ref"]


def test_predicate_exception_fails_the_stage(make_stage, make_config):
    def broken(cfg):
        raise KeyError("stages")

    calls = []
    stages = [make_stage("a", calls=calls, enabled=broken), make_stage("b", calls=calls)]
    result = StageExecutor().run(stages, make_config({}))

    assert calls == []
    assert result.outcome("a").status is StageStatus.FAILED
    assert result.outcome("a").error.type == ENGINE_CONFIGURATION_ERROR
    assert result.outcome("b").status is StageStatus.SKIPPED


def test_advisory_predicate_exception_is_logged_and_warned(make_stage, make_config):
    def broken(cfg):
        raise ValueError("bad toggle")

    stages = [make_stage("scan", policy=FailurePolicy.ADVISORY, enabled=broken), make_stage("deploy")]
    result = StageExecutor().run(stages, make_config({}))

    assert result.status is RunStatus.FAILED_ADVISORY
    assert result.outcome("deploy").status is StageStatus.SUCCESS

    failed = [e for e in result.events if e["message"] == "stage failed"]
    assert [e["stage"] for e in failed] == ["scan"]
    assert failed[0]["level"] == "warning"
    assert failed[0]["error_type"] == ENGINE_CONFIGURATION_ERROR
    assert result.manifest["stages"]["scan"]["status"] == "failed"


def test_unparseable_flag_fails_the_stage(make_stage, make_config):
    calls = []
    stages = [make_stage("secrets", calls=calls, enabled=config_flag("secrets.enabled"))]
    result = StageExecutor().run(stages, make_config({"secrets": {"enabled": "maybe"}}))

    assert calls == []
    assert result.outcome("secrets").error.type == ENGINE_CONFIGURATION_ERROR
    assert result.outcome("secrets").error.details["reason"].startswith("Invalid value for 'secrets.enabled'")
