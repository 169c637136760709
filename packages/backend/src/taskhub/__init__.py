"""TaskHub — project and task management backend.

Server side of the TaskHub workspace: signs users in through the hosted
identity provider, keeps their profiles in sync, and serves cross-entity
search over projects and tasks.
"""

__version__ = "0.1.0"
