"""Service configuration loaded from CODEPOCKET_* environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class CodePocketSettings(BaseSettings):
    """CodePocket local server settings.

    All fields are read from environment variables with the ``CODEPOCKET_``
    prefix.  For example, ``CODEPOCKET_LOG_LEVEL=DEBUG`` maps to ``log_level``.

    Everything the server persists lives below ``data_root``::

        {data_root}/workspaces/{workspace_id}/   sandbox copies
        {data_root}/prefs/{name}.json             key-value preference slots
        {data_root}/plugins/*.js                  editor plugin scripts
        {data_root}/settings.json                 editor settings blob
        {data_root}/.auth_token                   optional shared token
    """

    model_config = SettingsConfigDict(
        env_prefix="CODEPOCKET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_file: str | None = None
    """Optional file sink in addition to stderr."""

    # -- Data storage ----------------------------------------------------------
    data_root: str = "./data"

    # -- Auth ------------------------------------------------------------------
    auth_token: str | None = None
    """Shared API token.  Falls back to ``{data_root}/.auth_token`` when unset."""

    # -- Server ----------------------------------------------------------------
    host: str = "127.0.0.1"
    port: int = 13337

    # -- Editor UI -------------------------------------------------------------
    ui_dir: str = "public"
    """Static editor UI served at ``/``.  Resolved relative to the working directory."""

    # -- Terminals -------------------------------------------------------------
    terminal_shell: str = "/bin/sh"
    terminal_buffer_limit: int = 5000
    """Maximum number of buffered output chunks kept per terminal session."""

    # -- Sync ------------------------------------------------------------------
    max_mirror_file_size: int = 50 * 1024 * 1024
    """Files larger than this are skipped when mirroring into the sandbox."""

    # -- Derived paths ---------------------------------------------------------

    @property
    def data_path(self) -> Path:
        return Path(self.data_root)

    @property
    def workspaces_root(self) -> Path:
        return self.data_path / "workspaces"

    @property
    def prefs_dir(self) -> Path:
        return self.data_path / "prefs"

    @property
    def plugins_dir(self) -> Path:
        return self.data_path / "plugins"

    @property
    def settings_file(self) -> Path:
        return self.data_path / "settings.json"

    @property
    def ui_path(self) -> Path:
        return Path(self.ui_dir).resolve()

    @property
    def auth_token_file(self) -> Path:
        return self.data_path / ".auth_token"

    # -- Helpers ---------------------------------------------------------------

    def resolve_auth_token(self) -> str | None:
        """Return the configured token, the token file's content, or ``None``."""
        if self.auth_token:
            return self.auth_token
        path = self.auth_token_file
        if path.is_file():
            token = path.read_text(encoding="utf-8").strip()
            return token or None
        return None


def get_settings() -> CodePocketSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> CodePocketSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return CodePocketSettings()


# Apply lru_cache at runtime so the function is only called once.
from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
