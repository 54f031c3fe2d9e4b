"""Discovery stores: where the browser looks up a host name to find its manifest.

Keep this package import light: the Windows store only touches `winreg` when
one of its methods is called.
"""

from __future__ import annotations

from .base import REGISTRY_BASES, RegistrationStore, registry_base_for, registry_key
from .json_file import JsonFileRegistrationStore, default_store_file
from .memory import InMemoryRegistrationStore
from .windows import WindowsRegistryStore

__all__ = [
    "REGISTRY_BASES",
    "InMemoryRegistrationStore",
    "JsonFileRegistrationStore",
    "RegistrationStore",
    "WindowsRegistryStore",
    "default_store_file",
    "registry_base_for",
    "registry_key",
]
