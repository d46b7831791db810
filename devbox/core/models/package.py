"""
Package models — what to install and how it turned out.

A PackageSpec is static configuration (it comes from the profile),
never derived at runtime.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from devbox.core.models.platform import Family


class InstallOutcome(str, Enum):
    ALREADY_PRESENT = "already_present"
    INSTALLED = "installed"
    FAILED = "failed"


class PackageSpec(BaseModel):
    """A logical package name plus per-family name overrides.

    Example (YAML)::

        - name: ssh-askpass
          command: ssh-askpass
          overrides:
            fedora: openssh-askpass

    A bare string is accepted as shorthand for ``{name: <string>}``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    overrides: dict[Family, str] = Field(default_factory=dict)
    command: str | None = None   # binary whose presence on PATH means "installed"

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data

    def name_for(self, family: Family) -> str:
        """Distribution-specific package name for ``family``."""
        return self.overrides.get(family, self.name)
