"""Gogs branch source.

Discovers Gogs organizations, repositories and branches for a multibranch
build host, receives push webhooks to trigger re-indexing, keeps repository
webhooks registered for auto-registering sources and reports build results
back as Gogs issues.
"""

__version__ = "0.1.0"
