"""Configuration file loading and validation.

Loads an optional YAML configuration file, expands ``${ENV_VAR}``
placeholders, overlays ``NAMECHEAP_*`` environment variables, and
validates against Pydantic models defined in :mod:`schema`.

The public API is :func:`load_config` which returns a validated
:class:`NamecheapMcpConfig`.
"""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from namecheap_mcp.config.env import apply_env_overrides, expand_env_vars
from namecheap_mcp.config.schema import NamecheapMcpConfig
from namecheap_mcp.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Recognised config file extensions.
_YAML_EXTS = frozenset({".yaml", ".yml"})

# Config file search order (first match wins)
CONFIG_SEARCH_ORDER = ("config.yaml", "config.yml")

CONFIG_ENV_VAR = "NAMECHEAP_MCP_CONFIG"


def find_config_file(search_dirs: Optional[List[str]] = None) -> Optional[str]:
    """Return the first ``config.yaml``/``config.yml`` found, or ``None``.

    Directories default to the current working directory only; the file
    is optional because every setting can come from the environment.
    """
    for base_dir in search_dirs or [os.getcwd()]:
        for name in CONFIG_SEARCH_ORDER:
            candidate = os.path.join(base_dir, name)
            if os.path.isfile(candidate):
                return candidate
    return None


def _read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in _YAML_EXTS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML files (.yaml, .yml) are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ConfigurationError(
            "Top-level configuration content must be a YAML mapping (dictionary)."
        )
    return raw_data


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


# ── Public API ───────────────────────────────────────────────────────────


def load_config(
    cfg_fpath: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> NamecheapMcpConfig:
    """Load, expand, overlay, validate, and return the configuration.

    Steps:
        1. Read YAML file (when *cfg_fpath* is given)
        2. Expand ``${VAR}`` environment variable references
        3. Overlay ``NAMECHEAP_*`` environment variables
        4. Validate against :class:`NamecheapMcpConfig` (Pydantic)

    Raises:
        ConfigurationError: On file I/O errors, parse errors, or
            validation failures (all errors reported at once).
    """
    raw_data: Dict[str, Any] = {}
    if cfg_fpath is not None:
        logger.debug("Loading configuration file: %s", cfg_fpath)
        if not os.path.exists(cfg_fpath):
            raise ConfigurationError(f"Configuration file does not exist: {cfg_fpath}")
        raw_data = _read_config_file(cfg_fpath)
    else:
        logger.debug("No configuration file; using defaults and environment.")

    # ── Env var expansion and overlay (before validation) ────────────
    raw_data = expand_env_vars(raw_data, environ)
    raw_data = apply_env_overrides(raw_data, environ)

    # ── Pydantic validation (collects ALL errors) ────────────────────
    try:
        config = NamecheapMcpConfig.model_validate(raw_data)
    except ValidationError as exc:
        error_summary = _format_validation_errors(exc)
        raise ConfigurationError(
            f"Configuration validation failed ({len(exc.errors())} error(s)):\n" f"{error_summary}"
        ) from exc

    logger.info(
        "Configuration loaded (v%s, source=%s, sandbox=%s, transport=%s).",
        config.version,
        cfg_fpath or "environment",
        config.namecheap.use_sandbox,
        config.server.transport,
    )
    return config
