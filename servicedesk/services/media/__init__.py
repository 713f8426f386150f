from servicedesk.services.media.media_store import LocalMediaStore, MediaStore

__all__ = ["LocalMediaStore", "MediaStore"]
