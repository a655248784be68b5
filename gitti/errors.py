"""Error taxonomy shared by the backend, renderer, and live-reload watcher.

None of these are fatal once the viewer is running; only a startup-time
``RepositoryError`` ends the process.
"""

from __future__ import annotations


class GittiError(Exception):
    """Base class for all gitti errors."""


class RepositoryError(GittiError):
    """Selector/ref not found, or repository content could not be read."""


class RenderError(GittiError):
    """Viewport too small for the requested layout."""


class WatchError(GittiError):
    """The repository watcher lost access to the repository."""


__all__ = ["GittiError", "RepositoryError", "RenderError", "WatchError"]
