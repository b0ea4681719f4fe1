"""Environment variable handling for configuration values.

Handles ``${VAR}`` expansion in string values and the ``NAMECHEAP_*``
variable overlay applied on top of the config file.
"""

from __future__ import annotations

import copy
import os
import re
from typing import Any, Dict, Mapping, Optional

# Regex for ${VAR_NAME} - captures the variable name inside ${}
_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_TRUTHY = frozenset({"1", "true", "yes", "on"})

# env var -> key under the ``namecheap`` config section
ENV_OVERRIDES: Dict[str, str] = {
    "NAMECHEAP_API_KEY": "api_key",
    "NAMECHEAP_SANDBOX_API_KEY": "sandbox_api_key",
    "NAMECHEAP_API_USER": "api_user",
    "NAMECHEAP_USERNAME": "username",
    "NAMECHEAP_CLIENT_IP": "client_ip",
    "NAMECHEAP_USE_SANDBOX": "use_sandbox",
}


def expand_env_vars(value: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
    """Recursively expand ``${VAR}`` references in string values.

    - If the env var is not set, the placeholder is left unchanged.
    - Non-string leaves are returned as-is.
    - Dicts and lists are walked recursively.
    """
    env = os.environ if environ is None else environ
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(
            lambda m: env.get(m.group(1), m.group(0)),
            value,
        )
    if isinstance(value, dict):
        return {k: expand_env_vars(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item, env) for item in value]
    return value


def is_truthy(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def apply_env_overrides(
    raw_data: Mapping[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Return a copy of *raw_data* with ``NAMECHEAP_*`` variables applied.

    Set variables win over values from the file; empty ones are ignored.
    """
    env = os.environ if environ is None else environ
    data: Dict[str, Any] = copy.deepcopy(dict(raw_data))
    section = data.get("namecheap")
    if section is None:
        section = {}
    elif not isinstance(section, dict):
        # Leave it for schema validation to report.
        return data
    for var, key in ENV_OVERRIDES.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        section[key] = is_truthy(value) if key == "use_sandbox" else value
    data["namecheap"] = section
    return data
