"""Unified configuration layer for the chatstream client.

Sources are merged in a predictable order (later wins):
    1. Built-in defaults (``config.defaults``)
    2. Optional external config file (JSON or YAML) pointed to by
       ``CHATSTREAM_CONFIG_FILE``
    3. Environment variables (``CHATSTREAM_BASE_URL``, ``CHATSTREAM_CHAT_PATH``,
       ``CHATSTREAM_QUERY_PARAM``)
    4. In-code overrides passed to :func:`get_client_config`

External config file example::

    base_url: http://localhost:3001
    chat_path: /api/chat
    query_param: message

A ``.env`` file (path from ``DOTENV_FILE``, default ``.env``) is read once
before environment variables are consulted; it never overrides variables that
are already set.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import json
import os

from .defaults import (
    CHATSTREAM_DEFAULT_BASE_URL,
    CHATSTREAM_DEFAULT_CHAT_PATH,
    CHATSTREAM_DEFAULT_QUERY_PARAM,
)

try:  # Optional YAML support
    import yaml  # type: ignore
except ImportError:  # pragma: no cover
    yaml = None  # type: ignore


DEFAULTS: Dict[str, Any] = {
    "base_url": CHATSTREAM_DEFAULT_BASE_URL,
    "chat_path": CHATSTREAM_DEFAULT_CHAT_PATH,
    "query_param": CHATSTREAM_DEFAULT_QUERY_PARAM,
}

ENV_FIELD_MAP = {
    "base_url": "CHATSTREAM_BASE_URL",
    "chat_path": "CHATSTREAM_CHAT_PATH",
    "query_param": "CHATSTREAM_QUERY_PARAM",
}

_FILE_CACHE: Optional[Dict[str, Any]] = None
_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Parse KEY=VALUE lines from the dotenv file, once per process."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and k not in os.environ:
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _load_external_config() -> Dict[str, Any]:
    global _FILE_CACHE
    if _FILE_CACHE is not None:
        return _FILE_CACHE
    path = os.getenv("CHATSTREAM_CONFIG_FILE")
    if not path or not Path(path).exists():
        _FILE_CACHE = {}
        return _FILE_CACHE
    text = Path(path).read_text(encoding="utf-8")
    data: Any
    try:
        data = json.loads(text)
    except ValueError:
        data = {}
        if yaml is not None:  # pragma: no cover (depends on optional lib)
            try:
                data = yaml.safe_load(text) or {}
            except yaml.YAMLError:
                data = {}
    if not isinstance(data, dict):
        data = {}
    _FILE_CACHE = data
    return data


def reset_config_cache() -> None:
    """Forget the cached config file and dotenv state (tests, reloads)."""
    global _FILE_CACHE, _DOTENV_LOADED
    _FILE_CACHE = None
    _DOTENV_LOADED = False


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for field, env_name in ENV_FIELD_MAP.items():
        val = os.getenv(env_name)
        if val:
            out[field] = val
    return out


def get_client_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return the merged client configuration.

    Merge order (later wins): defaults -> external config -> env vars -> overrides
    """
    _load_dotenv_once()
    cfg: Dict[str, Any] = dict(DEFAULTS)
    cfg |= {k: v for k, v in _load_external_config().items() if k in DEFAULTS}
    cfg |= _env_overrides()
    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}
    return cfg


@dataclass(frozen=True)
class ClientSettings:
    """Typed view over :func:`get_client_config`."""

    base_url: str = CHATSTREAM_DEFAULT_BASE_URL
    chat_path: str = CHATSTREAM_DEFAULT_CHAT_PATH
    query_param: str = CHATSTREAM_DEFAULT_QUERY_PARAM

    @classmethod
    def from_config(cls, overrides: Optional[Dict[str, Any]] = None) -> "ClientSettings":
        cfg = get_client_config(overrides)
        return cls(
            base_url=str(cfg["base_url"]).rstrip("/"),
            chat_path="/" + str(cfg["chat_path"]).lstrip("/"),
            query_param=str(cfg["query_param"]),
        )

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}{self.chat_path}"


__all__ = [
    "ClientSettings",
    "get_client_config",
    "reset_config_cache",
    "DEFAULTS",
]
