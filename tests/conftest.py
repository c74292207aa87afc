# tests/conftest.py
"""
Fixtures compartilhados para testes do Atlas DeployFlow.

Este módulo define fixtures reutilizáveis que fornecem:
- camadas de configuração mínimas e determinísticas (base + overlays)
- fábricas de EffectiveConfig e de Stages dummy
- relógio determinístico para o Engine
- secret store/target em memória e adapters falsos

O objetivo destas fixtures é permitir testes do core
(config, pipeline, engine, traceability) e do orquestrador sem depender de:
- rede ou colaboradores externos reais
- variáveis de ambiente
- implementações concretas de build/deploy

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Stages dummy são descritores `Stage` com actions locais
    - Imports do projeto são lazy, para que falhas de import apareçam
      no teste que as exercita e não na coleta

Invariantes:
    - Nenhuma fixture executa um pipeline real
    - Apenas `config_dir` realiza I/O (sempre em `tmp_path`)
    - Dados retornados são novos a cada teste
"""

from datetime import datetime, timedelta, timezone

import pytest
import yaml


# =====================================================
# Config
# =====================================================

@pytest.fixture
def base_config() -> dict:
    """
    Camada base semelhante ao uso real: serviço, origem, políticas de gate
    e chart de deploy. Não contém `deploy.namespace` (vem do overlay).
    """
    return {
        "service": {"name": "orders-api"},
        "source": {"repository": "git@example.com:platform/orders-api.git", "branch": "main"},
        "test": {"blocking": False},
        "quality_gate": {"blocking": True, "policy": {"max_critical": 0}},
        "image": {"registry": "registry.example.com", "repository": "platform/orders-api"},
        "image_scan": {"blocking": True, "severity_threshold": "HIGH"},
        "secrets": {"enabled": False, "store_path": "kv/orders-api"},
        "deploy": {
            "chart": "charts/orders-api",
            "replicas": 1,
            "values": {"service": {"port": 8080}},
        },
    }


@pytest.fixture
def environment_overlays() -> dict:
    return {
        "dev": {"deploy": {"namespace": "orders-dev", "kube_context": "dev-cluster"}},
        "uat": {
            "deploy": {"namespace": "orders-uat", "kube_context": "uat-cluster", "replicas": 2},
            "secrets": {"enabled": True, "store_path": "kv/orders-api/uat"},
        },
        "prod": {
            "deploy": {"namespace": "orders-prod", "kube_context": "prod-cluster", "replicas": 3},
            "secrets": {"enabled": True, "store_path": "kv/orders-api/prod"},
            "test": {"blocking": True},
        },
    }


@pytest.fixture
def config_definitions(base_config, environment_overlays):
    from atlas_deployflow.core.config.loader import ConfigDefinitions

    return ConfigDefinitions(base=base_config, overlays=environment_overlays)


@pytest.fixture
def config_dir(tmp_path, base_config, environment_overlays):
    """Diretório `base.yaml` + `environments/<env>.yaml` materializado em disco."""
    root = tmp_path / "config"
    (root / "environments").mkdir(parents=True)
    (root / "base.yaml").write_text(yaml.safe_dump(base_config), encoding="utf-8")
    for env, layer in environment_overlays.items():
        (root / "environments" / f"{env}.yaml").write_text(yaml.safe_dump(layer), encoding="utf-8")
    return root


@pytest.fixture
def make_config():
    """
    Fábrica de `EffectiveConfig` já resolvida (sem passar pelo resolver).

    Usada pelos testes do Engine, que só precisam de uma configuração
    imutável com as chaves consultadas pelos predicados.
    """
    from atlas_deployflow.core.config.effective import EffectiveConfig
    from atlas_deployflow.core.config.environments import Environment

    def _make(data=None, environment="dev"):
        env = Environment(environment) if environment else None
        return EffectiveConfig(data or {}, environment=env)

    return _make


# =====================================================
# Pipeline / Engine
# =====================================================

@pytest.fixture
def fixed_clock():
    """Relógio determinístico: começa em 2026-01-16 UTC e avança 1s por leitura."""
    state = {"now": datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc)}

    def _clock():
        current = state["now"]
        state["now"] = current + timedelta(seconds=1)
        return current

    return _clock


@pytest.fixture
def make_stage():
    """
    Fábrica de descritores `Stage` dummy.

    Por padrão o Stage produz uma única chave `<name>.out`. Quando `fail`
    é uma exceção, a action a levanta; `calls` (lista) recebe o nome de
    cada Stage efetivamente executado, na ordem.
    """
    from atlas_deployflow.core.pipeline.stage import Stage
    from atlas_deployflow.core.pipeline.types import FailurePolicy

    def _make(
        name,
        *,
        inputs=(),
        outputs=None,
        policy=FailurePolicy.FATAL,
        fail=None,
        enabled=None,
        timeout_s=None,
        calls=None,
        action=None,
    ):
        outputs = (f"{name}.out",) if outputs is None else tuple(outputs)

        def _action(call):
            if calls is not None:
                calls.append(name)
            if fail is not None:
                raise fail
            return {key: f"{name}:{key}" for key in outputs}

        extra = {"enabled": enabled} if enabled is not None else {}
        return Stage(
            name=name,
            action=action or _action,
            inputs=tuple(inputs),
            outputs=outputs,
            policy=policy,
            timeout_s=timeout_s,
            **extra,
        )

    return _make


# =====================================================
# Segredos / adapters
# =====================================================

@pytest.fixture
def secret_store():
    from atlas_deployflow.secrets.store import InMemorySecretStore

    return InMemorySecretStore(
        {
            "kv/orders-api/uat": {"DB_PASSWORD": "uat-pass-123", "API_TOKEN": "uat-token-xyz"},
            "kv/orders-api/prod": {"DB_PASSWORD": "prod-pass-456"},
        }
    )


@pytest.fixture
def secret_target():
    from atlas_deployflow.secrets.store import InMemorySecretTarget

    return InMemorySecretTarget()


@pytest.fixture
def journal() -> list:
    """Registro ordenado das chamadas feitas aos adapters falsos."""
    return []


@pytest.fixture
def adapters(journal):
    from tests.fixtures.adapters import make_adapters

    return make_adapters(journal)


@pytest.fixture
def chart_defaults() -> dict:
    return {
        "replicaCount": 1,
        "image": {"registry": "", "repository": "", "tag": "latest"},
        "service": {"type": "ClusterIP", "port": 80},
    }
