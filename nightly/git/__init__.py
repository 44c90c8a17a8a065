"""Git integration."""

from .history import GitError, GitHistory, HistorySource

__all__ = ["GitError", "GitHistory", "HistorySource"]
