# tests/core/config/test_effective_config.py
"""
Testes de imutabilidade e acesso da EffectiveConfig.

A configuração efetiva é compartilhada com todos os Stages da run;
nenhum deles pode alterá-la.
"""

import pytest

from atlas_deployflow.core.config import EffectiveConfig, Environment, InvalidConfigValueError, compute_config_hash


@pytest.fixture
def cfg():
    return EffectiveConfig(
        {"deploy": {"namespace": "orders-dev", "tags": ["a", "b"]}, "service": {"name": "orders-api"}},
        environment=Environment.DEV,
    )


def test_get_path_and_default(cfg):
    assert cfg.get_path("deploy.namespace") == "orders-dev"
    assert cfg.get_path("deploy.missing", "x") == "x"
    assert cfg.get_path("service.name.deeper") is None
    assert cfg.has_path("deploy.tags")
    assert not cfg.has_path("image.tag")


def test_nested_values_are_read_only(cfg):
    with pytest.raises(TypeError):
        cfg["deploy"]["namespace"] = "other"
    assert cfg["deploy"]["tags"] == ("a", "b")


def test_attributes_cannot_be_reassigned(cfg):
    with pytest.raises(AttributeError):
        cfg._data = {}


def test_to_dict_is_an_independent_copy(cfg):
    data = cfg.to_dict()
    data["deploy"]["tags"].append("c")
    assert data["deploy"]["tags"] == ["a", "b", "c"]
    assert cfg["deploy"]["tags"] == ("a", "b")


def test_hash_and_environment(cfg):
    assert cfg.environment is Environment.DEV
    assert cfg.config_hash == compute_config_hash(cfg.to_dict())
    assert "dev" in repr(cfg)


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        (False, False),
        ("false", False),
        (" FALSE ", False),
        ("no", False),
        ("off", False),
        ("0", False),
        (0, False),
        ("true", True),
        ("Yes", True),
        ("on", True),
        (1, True),
    ],
)
def test_get_flag_accepts_textual_booleans(value, expected):
    cfg = EffectiveConfig({"secrets": {"enabled": value}})
    assert cfg.get_flag("secrets.enabled") is expected


def test_get_flag_default_when_absent_or_null():
    assert EffectiveConfig({}).get_flag("secrets.enabled") is False
    assert EffectiveConfig({"secrets": {"enabled": None}}).get_flag("secrets.enabled", True) is True


@pytest.mark.parametrize("value", ["maybe", "", 2, 0.5, ["true"]])
def test_get_flag_rejects_other_values(value):
    cfg = EffectiveConfig({"quality_gate": {"blocking": value}})
    with pytest.raises(InvalidConfigValueError) as exc:
        cfg.get_flag("quality_gate.blocking")
    assert exc.value.reason == "InvalidValue"
    assert exc.value.path == "quality_gate.blocking"
