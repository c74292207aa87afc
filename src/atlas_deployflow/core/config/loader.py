# src/atlas_deployflow/core/config/loader.py
"""
Loader canônico de definições de configuração.

Layout esperado de um diretório de configuração:

    config/
        base.yaml
        environments/
            dev.yaml
            uat.yaml
            prod.yaml

Responsabilidades do módulo:
    - Carregar arquivos YAML ou JSON validando o tipo raiz
    - Montar `ConfigDefinitions` (base + overlays por ambiente)

Invariantes:
    - O arquivo base é obrigatório
    - Arquivos vazios são mapas vazios
    - Overlays só são registrados para membros de `Environment`
    - As definições carregadas são imutáveis e podem ser compartilhadas
      entre runs concorrentes

Limites explícitos:
    - Não faz merge (ver `resolver`)
    - Não valida chaves obrigatórias
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import yaml  # PyYAML

from .effective import _freeze
from .environments import Environment
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)

PathLike = Union[str, Path]

_SUFFIXES = (".yaml", ".yml", ".json")


def load_config_file(path: PathLike) -> Dict[str, Any]:
    """
    Carrega um arquivo de configuração e valida sua estrutura básica.

    Args:
        path: Caminho para um arquivo `.yaml`, `.yml` ou `.json`.

    Returns:
        Dict[str, Any]: Conteúdo carregado (vazio se o arquivo estiver vazio).

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    path = Path(path)
    if not path.exists():
        raise DefaultsNotFoundError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Unsupported config format: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root must be a mapping, got: {type(data).__name__} ({path})"
        )

    return data


def _find_layer(directory: Path, stem: str) -> Optional[Path]:
    for suffix in _SUFFIXES:
        candidate = directory / f"{stem}{suffix}"
        if candidate.exists():
            return candidate
    return None


@dataclass(frozen=True)
class ConfigDefinitions:
    """
    Definições de configuração carregadas (base + overlays).

    São tratadas como somente-leitura após o load: o conteúdo é congelado
    e pode ser compartilhado entre runs concorrentes sem sincronização.
    """

    base: Mapping[str, Any] = field(default_factory=dict)
    overlays: Mapping[Environment, Mapping[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", _freeze(dict(self.base)))
        frozen = {Environment(env): _freeze(dict(layer)) for env, layer in self.overlays.items()}
        object.__setattr__(self, "overlays", MappingProxyType(frozen))

    @property
    def environments(self) -> tuple:
        return tuple(sorted(env.value for env in self.overlays))


def load_config_definitions(config_dir: PathLike) -> ConfigDefinitions:
    """
    Carrega `base` e os overlays de ambiente de um diretório.

    Arquivos em `environments/` cujo nome não pertence a `Environment`
    são ignorados: o conjunto de ambientes é fechado.

    Raises:
        DefaultsNotFoundError: Se não houver `base.yaml|yml|json`.
    """
    directory = Path(config_dir)
    base_file = _find_layer(directory, "base")
    if base_file is None:
        raise DefaultsNotFoundError(f"Base configuration not found in: {directory}")

    base = load_config_file(base_file)

    overlays: Dict[Environment, Dict[str, Any]] = {}
    env_dir = directory / "environments"
    for env in Environment:
        overlay_file = _find_layer(env_dir, env.value)
        if overlay_file is not None:
            overlays[env] = load_config_file(overlay_file)

    return ConfigDefinitions(base=base, overlays=overlays)
