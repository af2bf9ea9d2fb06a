"""pique: optimistic segment and queue editing with offline recovery.

The package keeps a project's segments and playback queue as ordered
collections, applies every change locally before the remote backend
confirms it, and rolls back, retries or queues the change depending on how
the remote call fails.

Entry point:
    from pique.session import ProjectSession
"""
