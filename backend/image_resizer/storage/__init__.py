"""Storage providers and the scheme registry."""

from image_resizer.storage.base import FileAccess
from image_resizer.storage.filesystem import FileSystemFileAccess
from image_resizer.storage.postgres import PostgresFileAccess
from image_resizer.storage.registry import ProviderRegistry, build_registry
from image_resizer.storage.swift import SwiftAuthError, SwiftFileAccess

__all__ = [
    "FileAccess",
    "FileSystemFileAccess",
    "PostgresFileAccess",
    "ProviderRegistry",
    "SwiftAuthError",
    "SwiftFileAccess",
    "build_registry",
]
