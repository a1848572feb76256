"""Upload client: session state machine and command line."""

from .session import CompressionStats, SelectedFile, Stage, UploadSession

__all__ = ["CompressionStats", "SelectedFile", "Stage", "UploadSession"]
