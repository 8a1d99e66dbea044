"""Unified settings: CLI flags, env vars, and code defaults in one object.

Priority chain (highest to lowest):
  1. Init kwargs (CLI flags passed by Click)
  2. Env vars with the ``KGSTORE_*`` prefix, plus the bare ``STORAGE_BACKEND``
     and ``MEMORY_FILE_PATH`` names older deployments set
  3. Code defaults

Uses Pydantic Settings v2.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

from kgstore.domain.types import StorageKind


class KgSettings(BaseSettings):
    """Settings for the kgstore CLI.

    Stored on the Click context object at the CLI root level.

    Attributes:
        memory_file: Text-format graph file. The SQLite store, when
            selected, lives next to it with a ``.db`` suffix.
        storage_backend: Which backend to read and write. Matched
            case-insensitively; unknown values fall back to ``jsonl``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "KGSTORE_",
        "populate_by_name": True,
    }

    memory_file: Path = Field(
        default_factory=lambda: Path.cwd() / "memory.jsonl",
        validation_alias=AliasChoices("KGSTORE_MEMORY_FILE", "MEMORY_FILE_PATH"),
    )
    storage_backend: StorageKind = Field(
        default=StorageKind.JSONL,
        validation_alias=AliasChoices("KGSTORE_STORAGE_BACKEND", "STORAGE_BACKEND"),
    )

    # --- CLI flags ---
    json_output: bool = False
    verbose: bool = False
    log_json: bool = False

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _lenient_backend(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return StorageKind.parse(value)
        return value

    @classmethod
    def from_cli(cls, **cli_flags: Any) -> KgSettings:
        """Construct settings from a CLI invocation.

        Flags left unset (``None``) fall through to env vars and defaults.
        A flag is passed under its field's primary alias so it outranks
        the env var aliases of the same field.
        """
        overrides: dict[str, Any] = {}
        for key, value in cli_flags.items():
            if value is None:
                continue
            alias = cls.model_fields[key].validation_alias
            if isinstance(alias, AliasChoices):
                key = str(alias.choices[0])
            overrides[key] = value
        return cls(**overrides)
