"""Artifact services."""

from cordage.artifacts.base import BaseArtifactService
from cordage.artifacts.in_memory import InMemoryArtifactService

__all__ = ["BaseArtifactService", "InMemoryArtifactService"]
