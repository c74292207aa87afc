# src/atlas_deployflow/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Atlas DeployFlow.

Todas as exceções representam violações estruturais detectadas **antes**
da execução de qualquer Stage. Cada classe expõe um código estável em
`reason`, usado em relatórios e no Manifest.

Taxonomia:
    - ConfigError
        - MissingRequiredConfigError   (MissingRequired)
        - UnknownEnvironmentError      (UnknownEnvironment)
        - MergeConflictError           (MergeConflict)
        - DefaultsNotFoundError        (DefaultsNotFound)
        - UnsupportedConfigFormatError (UnsupportedFormat)
        - InvalidConfigRootTypeError   (InvalidRootType)
        - InvalidConfigValueError      (InvalidValue)
"""

from __future__ import annotations

from typing import Iterable, Tuple


class ConfigError(Exception):
    """
    Exceção base da camada de configuração.

    Permite captura genérica de qualquer falha de configuração, separando-a
    de falhas de execução de Stages.
    """

    reason: str = "ConfigError"


class MissingRequiredConfigError(ConfigError):
    """
    Chaves obrigatórias ausentes após o merge de todas as camadas.

    O atributo `missing` lista todos os caminhos ausentes (não apenas o
    primeiro), para que o operador corrija tudo de uma vez.
    """

    reason = "MissingRequired"

    def __init__(self, missing: Iterable[str]):
        self.missing: Tuple[str, ...] = tuple(missing)
        super().__init__(
            "Missing required configuration keys: " + ", ".join(self.missing)
        )


class UnknownEnvironmentError(ConfigError):
    """
    Ambiente de destino desconhecido ou sem overlay registrado.

    Ambientes formam um conjunto fechado (ver `Environment`); qualquer nome
    fora dele é rejeitado antes de qualquer trabalho de build.
    """

    reason = "UnknownEnvironment"

    def __init__(self, name: object, known: Iterable[str]):
        self.name = name
        self.known: Tuple[str, ...] = tuple(known)
        super().__init__(
            f"Unknown environment {name!r}; registered: {', '.join(self.known) or '(none)'}"
        )


class MergeConflictError(ConfigError):
    """
    Conflito estrutural durante o deep-merge.

    Ocorre quando a mesma chave é um mapa em uma camada e um valor não-mapa
    em outra. Exemplo:
        - base:     {"deploy": {"replicas": 2}}
        - override: {"deploy": "prod"}

    Nenhum merge parcial é produzido.
    """

    reason = "MergeConflict"


class DefaultsNotFoundError(ConfigError):
    """Arquivo de configuração base não encontrado."""

    reason = "DefaultsNotFound"


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado.

    Formatos suportados (v1): YAML (.yaml, .yml) e JSON (.json).
    """

    reason = "UnsupportedFormat"


class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz do arquivo não é um mapa chave-valor."""

    reason = "InvalidRootType"


class InvalidConfigValueError(ConfigError):
    """
    Valor com tipo incompatível com o uso esperado.

    Exemplo: `secrets.enabled: "talvez"` onde um booleano é exigido.
    """

    reason = "InvalidValue"

    def __init__(self, path: str, value: object, expected: str):
        self.path = path
        self.value = value
        super().__init__(f"Invalid value for {path!r}: expected {expected}, got {value!r}")
