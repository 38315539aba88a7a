from furioza.kernel.storage.blob_store import BlobStore, LocalBlobStore

__all__ = ["BlobStore", "LocalBlobStore"]
