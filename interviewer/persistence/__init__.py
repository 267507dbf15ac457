"""Storage adapters."""

from interviewer.persistence.protocol_storage import FilesystemProtocolStorage

__all__ = ["FilesystemProtocolStorage"]
