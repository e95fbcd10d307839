from .file_store import FileItemStore

__all__ = ["FileItemStore"]
