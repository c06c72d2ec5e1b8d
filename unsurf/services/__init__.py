"""
unsurf/services

Collaborators injected into the tools: persistence, browser automation,
and the optional gallery (cache) and directory (index).
"""

from unsurf.services.browser import AbstractBrowser, CDPBrowser, StaticBrowser
from unsurf.services.directory import AbstractDirectory, InMemoryDirectory
from unsurf.services.gallery import AbstractGallery, InMemoryGallery
from unsurf.services.store import AbstractStore, FileStore, InMemoryStore

__all__ = [
    "AbstractBrowser",
    "AbstractDirectory",
    "AbstractGallery",
    "AbstractStore",
    "CDPBrowser",
    "FileStore",
    "InMemoryDirectory",
    "InMemoryGallery",
    "InMemoryStore",
    "StaticBrowser",
]
