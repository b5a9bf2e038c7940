# Task board: multi-tenant kanban tasks, tags, workspaces and invites
#
# Components:
#   schema.py     - Domain model (Task, Tag, Subtask, Note, Workspace, Invite)
#   validation.py - Payload validation against declarative schemas
#   errors.py     - Error taxonomy surfaced through ActionResult
#   store.py      - SQLite persistence layer and versioned migrations
#   workspace.py  - Active workspace resolution and invite redemption
#   actions.py    - Authenticated, workspace-scoped mutation service
#   queries.py    - Read models for board rendering
#   events.py     - Board-changed notifications (read cache invalidation)
#   auth.py       - Auth provider and sticky preference collaborators
#   config.py     - YAML + environment configuration
#   legacy.py     - One-time import of pre-workspace task exports
