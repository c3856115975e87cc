"""Bundled registry mapping short names to llms.txt URLs."""

from llxt.registry.errors import RegistryError, RegistryErrorClass
from llxt.registry.models import RegistryEntry
from llxt.registry.registry import Registry, slugify


__all__ = [
    "Registry",
    "RegistryEntry",
    "RegistryError",
    "RegistryErrorClass",
    "slugify",
]
