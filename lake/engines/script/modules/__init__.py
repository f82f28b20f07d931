"""
Built-in capability modules: crypto, fs, process, env, net, logger, random.
"""

from lake.engines.script.modules.base import CapabilityModule, plugin_error
from lake.engines.script.modules.crypto import make_crypto_module
from lake.engines.script.modules.env import make_env_module
from lake.engines.script.modules.fs import make_fs_module
from lake.engines.script.modules.log import make_log_module
from lake.engines.script.modules.net import make_net_module
from lake.engines.script.modules.process import make_process_module
from lake.engines.script.modules.random import make_random_module

__all__ = [
    "CapabilityModule",
    "plugin_error",
    "make_crypto_module",
    "make_fs_module",
    "make_process_module",
    "make_env_module",
    "make_net_module",
    "make_log_module",
    "make_random_module",
]
