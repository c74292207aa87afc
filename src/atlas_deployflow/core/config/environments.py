# src/atlas_deployflow/core/config/environments.py
"""Conjunto fechado de ambientes de destino."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Environment(str, Enum):
    """
    Ambientes de destino suportados.

    O conjunto é explicitamente enumerado: um nome fora dele (ex.:
    "staging") nunca é aceito como ambiente, mesmo que exista um arquivo
    de overlay com esse nome.
    """

    DEV = "dev"
    UAT = "uat"
    PROD = "prod"

    @classmethod
    def parse(cls, name: object) -> Optional["Environment"]:
        """Retorna o membro correspondente a `name` ou None."""
        if isinstance(name, Environment):
            return name
        if not isinstance(name, str):
            return None
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None
