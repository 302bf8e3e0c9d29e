"""Secret operations and configuration injection."""

from .injection import (
    ConfigInjector,
    SecretRef,
    as_secret_ref,
    find_secret_refs,
    load_secret_refs,
)
from .operations import SecretOperations, normalize_path

__all__ = [
    "SecretOperations",
    "normalize_path",
    "ConfigInjector",
    "SecretRef",
    "as_secret_ref",
    "find_secret_refs",
    "load_secret_refs",
]
