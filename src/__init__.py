"""docworker — queue filtering, entity extraction workers and batch search jobs."""

from docworker.version import __version__

__all__ = ["__version__"]
