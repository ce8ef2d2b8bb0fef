"""
Loading ClientSettings from environment variables, .env and config files.

Example:
    >>> from fluent_http.core.env_config import load_from_env, load_from_file
    >>> settings = load_from_env()                 # FLUENT_HTTP_* + .env
    >>> settings = load_from_env(retries=3)        # with overrides
    >>> settings = load_from_file("client.yaml")
"""

from .loader import load_from_env, load_from_file
from .validator import ClientConfigFields, ClientEnvSettings

__all__ = [
    "load_from_env",
    "load_from_file",
    "ClientConfigFields",
    "ClientEnvSettings",
]
