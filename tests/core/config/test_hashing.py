# tests/core/config/test_hashing.py
"""
Testes do hashing determinístico de configuração.

O hash identifica a configuração efetiva de cada run no Manifest;
configurações estruturalmente iguais devem produzir o mesmo hash,
independentemente da ordem de inserção das chaves.
"""

import hashlib
import json

import pytest

try:
    from atlas_deployflow.core.config.effective import EffectiveConfig
    from atlas_deployflow.core.config.hashing import compute_config_hash
except Exception as e:  # noqa: BLE001
    compute_config_hash = None
    EffectiveConfig = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _canonical_json_bytes(obj: dict) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _require_imports():
    if compute_config_hash is None:
        pytest.fail(f"Missing compute_config_hash. Import error: {_IMPORT_ERR}")


def test_hash_is_deterministic():
    _require_imports()
    h1 = compute_config_hash({"b": 1, "a": {"y": 2, "x": 1}})
    h2 = compute_config_hash({"a": {"x": 1, "y": 2}, "b": 1})
    assert h1 == h2
    assert isinstance(h1, str)
    assert len(h1) == 64


def test_hash_matches_sha256_of_canonical_json():
    _require_imports()
    cfg = {"deploy": {"namespace": "orders-dev", "replicas": 2}, "service": {"name": "orders-api"}}
    expected = hashlib.sha256(_canonical_json_bytes(cfg)).hexdigest()
    assert compute_config_hash(cfg) == expected


def test_hash_changes_on_override():
    _require_imports()
    base = {"deploy": {"replicas": 1}}
    changed = {"deploy": {"replicas": 2}}
    assert compute_config_hash(base) != compute_config_hash(changed)


def test_hash_of_frozen_config_matches_plain_dict():
    """Listas congeladas (tuplas) e mapas read-only hasheiam como o dict original."""
    _require_imports()
    data = {"image_scan": {"ignore": ["CVE-1", "CVE-2"]}, "service": {"name": "orders-api"}}
    assert compute_config_hash(EffectiveConfig(data)) == compute_config_hash(data)


def test_hash_rejects_non_mapping():
    _require_imports()
    with pytest.raises(TypeError):
        compute_config_hash(["not", "a", "mapping"])
