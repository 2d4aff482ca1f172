"""Validation of server environment variables."""

import re
from typing import Any, List, Mapping

from ..models import Diagnostic, DiagnosticCode
from .config_loader import get_servers_from_config

VAR_REFERENCE = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}|\$([A-Z_][A-Z0-9_]*)")

SECRET_KEY_PATTERNS = [
    re.compile(r"^(api[_-]?key|secret|token|password|pwd|auth|credential)", re.IGNORECASE),
    re.compile(r"_(api[_-]?key|secret|token|password|pwd|auth|credential)$", re.IGNORECASE),
]

SECRET_VALUE_PATTERNS = [
    re.compile(r"^sk[-_][a-zA-Z0-9]{20,}$"),  # OpenAI-style keys
    re.compile(r"^[a-f0-9]{32,}$", re.IGNORECASE),  # long hex strings
    re.compile(r"^eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+"),  # JWTs
    re.compile(r"^ghp_[a-zA-Z0-9]{36}$"),  # GitHub tokens
    re.compile(r"^github_pat_[a-zA-Z0-9_]{22,}"),
    re.compile(r"^xoxb-[0-9]{10,}"),  # Slack bot tokens
    re.compile(r"^xoxp-[0-9]{10,}"),  # Slack user tokens
    re.compile(r"^AKIA[A-Z0-9]{16}$"),  # AWS access keys
]

EMPTY_VALUES = ("", '""', "''")


def referenced_variables(value: str) -> List[str]:
    """Names of ``${VAR}`` / ``$VAR`` references in a value, in order."""
    return [braced or bare for braced, bare in VAR_REFERENCE.findall(value)]


def looks_like_secret(key: str, value: str) -> bool:
    """True when a key name or literal value looks like a credential."""
    if "$" in value:
        return False
    return any(p.search(key) for p in SECRET_KEY_PATTERNS) or any(
        p.search(value) for p in SECRET_VALUE_PATTERNS
    )


def validate_server_env(
    name: str, env: Mapping[str, Any], config_path: str, environ: Mapping[str, str]
) -> List[Diagnostic]:
    """Check one server's environment mapping against the supplied environment."""
    results: List[Diagnostic] = []

    for key, value in env.items():
        if not isinstance(value, str):
            continue

        for var_name in referenced_variables(value):
            if not environ.get(var_name):
                results.append(
                    Diagnostic.warning(
                        DiagnosticCode.ENV_VAR_MISSING,
                        f'Server "{name}": Environment variable {var_name} is not set',
                        config_path,
                        suggestion=f'Set it with: export {var_name}="your-value"',
                    )
                )

        if value in EMPTY_VALUES:
            results.append(
                Diagnostic.warning(
                    DiagnosticCode.ENV_VAR_EMPTY,
                    f'Server "{name}": Environment variable {key} is empty',
                    config_path,
                    suggestion="This may cause authentication or configuration issues",
                )
            )
        elif looks_like_secret(key, value):
            results.append(
                Diagnostic.warning(
                    DiagnosticCode.HARDCODED_SECRET,
                    f'Server "{name}": Possible hardcoded secret in {key}',
                    config_path,
                    suggestion=f"Use an environment variable reference like ${{{key.upper()}}} instead",
                )
            )

    return results


def validate_env_vars(
    config: Mapping[str, Any], config_path: str, environ: Mapping[str, str]
) -> List[Diagnostic]:
    """Validate environment mappings for every server in a config mapping."""
    servers = get_servers_from_config(config)
    if not servers:
        return []

    results: List[Diagnostic] = []
    for name, entry in servers.items():
        if not isinstance(entry, dict):
            continue
        env = entry.get("env")
        if isinstance(env, dict):
            results.extend(validate_server_env(name, env, config_path, environ))
    return results
