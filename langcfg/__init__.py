"""langcfg package.

YAML config and language file registries for plugin hosts. Most callers only
need `create_context` and the two registries it returns.
"""

from .context import Registries, create_context, get_config_registry, get_context, get_lang_registry
from .host import PluginHost

__all__ = (
    "PluginHost",
    "Registries",
    "create_context",
    "get_config_registry",
    "get_context",
    "get_lang_registry",
)
