"""
Persistence: opaque key → JSON document stores.
"""

from .blob_store import BlobStore, FileBlobStore, MemoryBlobStore, SqlBlobStore, open_store
from .keys import StoreKey

__all__ = ["BlobStore", "FileBlobStore", "MemoryBlobStore", "SqlBlobStore", "StoreKey", "open_store"]
