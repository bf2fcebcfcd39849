"""
Scene Store Module.

Owned project state (scenes, images, clips) and its snapshot persistence.
"""

from modules.scene_store.store import ErrorRecord, SceneStore
from modules.scene_store.persistence import ProjectPersistence, sanitize

__all__ = [
    "ErrorRecord",
    "SceneStore",
    "ProjectPersistence",
    "sanitize",
]
