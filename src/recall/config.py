"""Recall configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (RECALL_SESSIONS_PATH, RECALL_DB_PATH,
                             RECALL_EMBEDDING_MODEL, RECALL_EMBEDDING_DIMENSIONS)
  3. Per-directory recall.yaml
  4. Global ~/.recall/config.yaml  (no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from recall.ingest.chunker import MAX_CHUNK_CHARS, MIN_CHUNK_CHARS, TOOL_RESULT_CHARS

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".recall"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "recall.yaml"

_DEFAULT_SESSIONS_PATH: Path = Path.home() / ".claude" / "projects"
_DEFAULT_DB_PATH: Path = _GLOBAL_CONFIG_DIR / "recall.db"

# Keys that suggest a credential; forbidden in global config.
# Does NOT match legitimate keys like max_chars or dimensions.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["paths", "embedding", "chunking", "search", "watch"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class PathsCfg:
    """Where transcripts live and where the index is stored (recall.yaml: paths:)."""

    sessions_path: Path = _DEFAULT_SESSIONS_PATH
    db_path: Path = _DEFAULT_DB_PATH


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (recall.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-small"
    dimensions: int = 1536
    api_base: str | None = None


@dataclass
class ChunkingCfg:
    """Chunk size thresholds, in rendered characters (recall.yaml: chunking:)."""

    min_chars: int = MIN_CHUNK_CHARS
    max_chars: int = MAX_CHUNK_CHARS
    tool_result_chars: int = TOOL_RESULT_CHARS


@dataclass
class SearchCfg:
    """Default result limits (recall.yaml: search:)."""

    limit: int = 5
    decisions_limit: int = 20


@dataclass
class WatchCfg:
    """File watcher settings (recall.yaml: watch:)."""

    debounce_seconds: float = 2.0


@dataclass
class RecallConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    paths: PathsCfg = field(default_factory=PathsCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    search: SearchCfg = field(default_factory=SearchCfg)
    watch: WatchCfg = field(default_factory=WatchCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: RecallConfig) -> None:
    ch = cfg.chunking
    if ch.min_chars < 1:
        raise ConfigError(f"chunking.min_chars must be >= 1, got {ch.min_chars}")
    if ch.max_chars < ch.min_chars:
        raise ConfigError(
            f"chunking.max_chars ({ch.max_chars}) must be >= chunking.min_chars ({ch.min_chars})"
        )
    if ch.tool_result_chars < 1:
        raise ConfigError(f"chunking.tool_result_chars must be >= 1, got {ch.tool_result_chars}")
    if cfg.embedding.dimensions < 1:
        raise ConfigError(f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}")
    if cfg.search.limit < 1:
        raise ConfigError(f"search.limit must be >= 1, got {cfg.search.limit}")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> RecallConfig:
    """Build a *RecallConfig* from a merged raw YAML dict."""
    cfg = RecallConfig()

    if "paths" in data:
        p = data["paths"] or {}
        cfg.paths = PathsCfg(
            sessions_path=Path(p.get("sessions_path", cfg.paths.sessions_path)).expanduser(),
            db_path=Path(p.get("db_path", cfg.paths.db_path)).expanduser(),
        )

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
            api_base=e.get("api_base") or cfg.embedding.api_base,
        )

    if "chunking" in data:
        c = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(
            min_chars=int(c.get("min_chars", cfg.chunking.min_chars)),
            max_chars=int(c.get("max_chars", cfg.chunking.max_chars)),
            tool_result_chars=int(c.get("tool_result_chars", cfg.chunking.tool_result_chars)),
        )

    if "search" in data:
        s = data["search"] or {}
        cfg.search = SearchCfg(
            limit=int(s.get("limit", cfg.search.limit)),
            decisions_limit=int(s.get("decisions_limit", cfg.search.decisions_limit)),
        )

    if "watch" in data:
        w = data["watch"] or {}
        cfg.watch = WatchCfg(
            debounce_seconds=float(w.get("debounce_seconds", cfg.watch.debounce_seconds)),
        )

    return cfg


def _apply_env_overrides(cfg: RecallConfig) -> RecallConfig:
    """Apply RECALL_* environment variable overrides."""
    if value := os.environ.get("RECALL_SESSIONS_PATH"):
        cfg.paths.sessions_path = Path(value).expanduser()
    if value := os.environ.get("RECALL_DB_PATH"):
        cfg.paths.db_path = Path(value).expanduser()
    if value := os.environ.get("RECALL_EMBEDDING_MODEL"):
        cfg.embedding.model = value
    if value := os.environ.get("RECALL_EMBEDDING_DIMENSIONS"):
        try:
            cfg.embedding.dimensions = int(value)
        except ValueError:
            raise ConfigError(
                f"RECALL_EMBEDDING_DIMENSIONS must be an integer, got '{value}'"
            ) from None
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RecallConfig:
    """Load and return a merged *RecallConfig*.

    Applies layers in order: global → per-directory → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *recall.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.recall/config.yaml`` with defaults if it does not exist.

    Creates the parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# Recall global configuration.\n"
            "# NEVER store API keys here — use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "paths:\n"
            f"  sessions_path: {_DEFAULT_SESSIONS_PATH}\n"
            f"  db_path: {_DEFAULT_DB_PATH}\n"
            "\n"
            "embedding:\n"
            "  model: openai/text-embedding-3-small\n"
            "  dimensions: 1536\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
