# src/atlas_deployflow/core/config/__init__.py
"""
Camada de configuração do Atlas DeployFlow.

A configuração efetiva de uma run é resolvida a partir de três camadas,
em ordem crescente de precedência:
    - base (defaults do serviço)
    - overlay do ambiente de destino (dev / uat / prod)
    - parâmetros de runtime fornecidos na invocação

Responsabilidades do pacote:
    - Carregamento de arquivos YAML/JSON de definição
    - Deep-merge determinístico entre camadas
    - Validação de ambiente e de chaves obrigatórias
    - Hash canônico da configuração efetiva

Invariantes:
    - A configuração efetiva é imutável
    - A mesma entrada sempre produz a mesma configuração (e o mesmo hash)
    - Nenhuma variável de ambiente é consultada
"""

from .effective import EffectiveConfig
from .environments import Environment
from .errors import (
    ConfigError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    MergeConflictError,
    MissingRequiredConfigError,
    UnknownEnvironmentError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import ConfigDefinitions, load_config_definitions, load_config_file
from .merge import deep_merge, merge_layers
from .resolver import REQUIRED_KEYS, ConfigResolver, expand_runtime_params, resolve_config

__all__ = [
    "ConfigDefinitions",
    "ConfigError",
    "ConfigResolver",
    "DefaultsNotFoundError",
    "EffectiveConfig",
    "Environment",
    "InvalidConfigRootTypeError",
    "InvalidConfigValueError",
    "MergeConflictError",
    "MissingRequiredConfigError",
    "REQUIRED_KEYS",
    "UnknownEnvironmentError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "deep_merge",
    "expand_runtime_params",
    "load_config_definitions",
    "load_config_file",
    "merge_layers",
    "resolve_config",
]
