"""
In-memory artifact service.
"""

from cordage.artifacts.base import BaseArtifactService
from cordage.domain.content import Part

USER_NAMESPACE = "user:"


class InMemoryArtifactService(BaseArtifactService):
    """Keeps every saved version in a list per artifact path."""

    def __init__(self):
        self._artifacts: dict[str, list[Part]] = {}

    @staticmethod
    def _path(app_name: str, user_id: str, session_id: str, filename: str) -> str:
        if filename.startswith(USER_NAMESPACE):
            return f"{app_name}/{user_id}/user/{filename}"
        return f"{app_name}/{user_id}/{session_id}/{filename}"

    async def save_artifact(
        self, *, app_name: str, user_id: str, session_id: str, filename: str, artifact: Part
    ) -> int:
        versions = self._artifacts.setdefault(
            self._path(app_name, user_id, session_id, filename), []
        )
        versions.append(artifact.model_copy(deep=True))
        return len(versions) - 1

    async def load_artifact(
        self,
        *,
        app_name: str,
        user_id: str,
        session_id: str,
        filename: str,
        version: int | None = None,
    ) -> Part | None:
        versions = self._artifacts.get(self._path(app_name, user_id, session_id, filename))
        if not versions:
            return None
        if version is None:
            return versions[-1]
        if 0 <= version < len(versions):
            return versions[version]
        return None

    async def list_artifact_keys(self, *, app_name: str, user_id: str, session_id: str) -> list[str]:
        session_prefix = f"{app_name}/{user_id}/{session_id}/"
        user_prefix = f"{app_name}/{user_id}/user/"
        keys = []
        for path in self._artifacts:
            if path.startswith(session_prefix):
                keys.append(path.removeprefix(session_prefix))
            elif path.startswith(user_prefix):
                keys.append(path.removeprefix(user_prefix))
        return sorted(keys)

    async def delete_artifact(
        self, *, app_name: str, user_id: str, session_id: str, filename: str
    ) -> None:
        self._artifacts.pop(self._path(app_name, user_id, session_id, filename), None)

    async def list_versions(
        self, *, app_name: str, user_id: str, session_id: str, filename: str
    ) -> list[int]:
        versions = self._artifacts.get(self._path(app_name, user_id, session_id, filename), [])
        return list(range(len(versions)))


__all__ = ["InMemoryArtifactService"]
