# src/atlas_deployflow/deploy/image.py
"""Referência de imagem de container (registry + repository + tag e/ou digest)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ImageReference:
    registry: str
    repository: str
    tag: str = ""
    digest: str = ""

    def __post_init__(self) -> None:
        if not self.repository:
            raise ValueError("image repository must be non-empty")
        if not self.tag and not self.digest:
            raise ValueError("image reference needs a tag or a digest")
        if self.digest and ":" not in self.digest:
            raise ValueError(f"image digest must be '<algorithm>:<hex>': {self.digest!r}")

    def __str__(self) -> str:
        prefix = f"{self.registry}/" if self.registry else ""
        text = f"{prefix}{self.repository}"
        if self.tag:
            text += f":{self.tag}"
        if self.digest:
            text += f"@{self.digest}"
        return text

    def to_values(self) -> Dict[str, str]:
        values = {"registry": self.registry, "repository": self.repository, "tag": self.tag}
        if self.digest:
            values["digest"] = self.digest
        return values

    @classmethod
    def parse(cls, text: str) -> "ImageReference":
        """
        Interpreta `registry/repo/name:tag`, `registry/repo/name@sha256:<hex>`
        ou `registry/repo/name:tag@sha256:<hex>`.

        O digest é separado antes da tag, já que ele mesmo contém `:`. O
        primeiro segmento só é tratado como registry quando contém `.` ou
        `:` (host[:porta]) ou é `localhost`, como nas ferramentas de container.
        """
        if not isinstance(text, str) or not text.strip():
            raise ValueError("image reference must be a non-empty string")

        name, at, digest = text.strip().partition("@")
        if at and not digest:
            raise ValueError(f"image reference has an empty digest: {text!r}")

        repo_part, sep, tag = name.rpartition(":")
        if not sep or "/" in tag:
            if not digest:
                raise ValueError(f"image reference has no tag: {text!r}")
            repo_part, tag = name, ""

        first, slash, rest = repo_part.partition("/")
        if slash and ("." in first or ":" in first or first == "localhost"):
            return cls(registry=first, repository=rest, tag=tag, digest=digest)
        return cls(registry="", repository=repo_part, tag=tag, digest=digest)
