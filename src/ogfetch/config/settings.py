"""Unified settings: CLI flags, env vars and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs (CLI flags passed by Click)
  2. Env vars (``OGFETCH_*`` prefix, ``__`` for nested sections)
  3. TOML file (``ogfetch.toml`` discovered via walk-up)
  4. Code defaults baked into the section models

The object is frozen. Per-run overrides go through :meth:`OgSettings.with_policy`
and friends, which return new copies.
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    TomlConfigSettingsSource,
)

from ogfetch.config.discovery import find_config
from ogfetch.config.models import ApiConfig, BatchConfig, FieldNames, WritePolicy

# TOML file for the settings object under construction. Sources are
# resolved inside a classmethod, so the path cannot travel as an argument.
_active_toml: ContextVar[Path | None] = ContextVar("ogfetch_active_toml", default=None)


class OgSettings(BaseSettings):
    """Unified settings for the ogfetch CLI.

    Attributes:
        root: Working directory for relative note paths (parent of
            ``ogfetch.toml``, or CWD if no config found).
        config_path: The TOML file in effect, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "OGFETCH_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- global CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- ogfetch.toml sections ---
    api: ApiConfig = Field(default_factory=ApiConfig)
    fields: FieldNames = Field(default_factory=FieldNames)
    policy: WritePolicy = Field(default_factory=WritePolicy)
    batch: BatchConfig = Field(default_factory=BatchConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings]
        toml_path = _active_toml.get()
        if toml_path is not None:
            sources.append(TomlConfigSettingsSource(settings_cls, toml_file=toml_path))
        return tuple(sources)

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        api_key: str | None = None,
        **cli_flags: Any,
    ) -> OgSettings:
        """Build settings for one CLI invocation.

        An explicit *config_path* wins over discovery; a path that does not
        exist means "no config file". *root* defaults to the config file's
        directory. A non-empty *api_key* replaces the configured key.

        Raises:
            click.ClickException: If the TOML file cannot be parsed.
        """
        if config_path:
            explicit = Path(config_path)
            toml_path = explicit if explicit.is_file() else None
        else:
            toml_path = find_config(root)

        if root is None:
            root = toml_path.parent if toml_path else Path.cwd()

        token = _active_toml.set(toml_path)
        try:
            settings = cls(root=root, config_path=toml_path, **cli_flags)
        except tomllib.TOMLDecodeError as exc:
            raise click.ClickException(f"Invalid TOML in {toml_path}: {exc}") from exc
        finally:
            _active_toml.reset(token)

        if api_key:
            settings = settings.with_api(api_key=api_key)
        return settings

    # --- Copy-on-write updates ---

    def with_api(self, **changes: Any) -> OgSettings:
        """Return settings with ``[api]`` values replaced."""
        return self.model_copy(update={"api": self.api.model_copy(update=changes)})

    def with_policy(self, **overrides: Any) -> OgSettings:
        """Return settings with non-None policy overrides applied."""
        return self.model_copy(update={"policy": self.policy.merged(**overrides)})

    @property
    def batch_delay_seconds(self) -> float:
        """Pause between batch documents.

        ``[batch] delay_ms`` when set, otherwise one rate-limit slot.
        """
        if self.batch.delay_ms is not None:
            return self.batch.delay_ms / 1000
        return 60 / self.api.rate_limit
