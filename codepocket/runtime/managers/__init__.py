"""Business logic for the local server and the host CLI.

Each module encapsulates one concern (sandboxed file access, search, editor
settings and plugins, terminal sessions, sync).  Managers raise domain
exceptions (``NotFoundError``, ``ForbiddenError``, ``OSError``), never HTTP
exceptions -- that translation is the router's responsibility.
"""
