"""
Artifact service interface.
"""

from abc import ABC, abstractmethod

from cordage.domain.content import Part


class BaseArtifactService(ABC):
    """
    Versioned binary/text artifacts keyed by app, user, session and filename.

    Filenames starting with ``user:`` are scoped to the user rather than to a
    single session.
    """

    @abstractmethod
    async def save_artifact(
        self, *, app_name: str, user_id: str, session_id: str, filename: str, artifact: Part
    ) -> int:
        """Save a new version, returning its version number (0-based)"""
        pass

    @abstractmethod
    async def load_artifact(
        self,
        *,
        app_name: str,
        user_id: str,
        session_id: str,
        filename: str,
        version: int | None = None,
    ) -> Part | None:
        """Load a version, the latest when version is None"""
        pass

    @abstractmethod
    async def list_artifact_keys(self, *, app_name: str, user_id: str, session_id: str) -> list[str]:
        """List filenames visible from a session"""
        pass

    @abstractmethod
    async def delete_artifact(
        self, *, app_name: str, user_id: str, session_id: str, filename: str
    ) -> None:
        """Delete every version of an artifact"""
        pass

    @abstractmethod
    async def list_versions(
        self, *, app_name: str, user_id: str, session_id: str, filename: str
    ) -> list[int]:
        """List available version numbers"""
        pass


__all__ = ["BaseArtifactService"]
