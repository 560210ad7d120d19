from abc import ABC, abstractmethod
from typing import List, Optional

class IRepositoryApi(ABC):
    """
    Read-only view of a source-control host.
    Every call may raise FetchFailure (rate limiting is flagged on the error).
    """
    @abstractmethod
    async def get_repository(self, full_name: str) -> dict:
        """Repository metadata (stars, owner, urls, description, updated_at)."""
        pass

    @abstractmethod
    async def list_directory(self, full_name: str, path: str, ref: str) -> List[dict]:
        """Immediate children of `path` at `ref`. Each item has at least 'name'."""
        pass

    @abstractmethod
    async def get_file_content(self, full_name: str, path: str, ref: str) -> str:
        """Decoded text of a single file."""
        pass

    @abstractmethod
    async def get_readme(self, full_name: str) -> str:
        """Decoded text of the repository-root README."""
        pass

    @abstractmethod
    async def get_latest_release_tag(self, full_name: str) -> Optional[str]:
        """Tag of the latest release, or None when there are no releases."""
        pass

    @abstractmethod
    def raw_file_url(self, full_name: str, branch: str, path: str) -> str:
        """Direct download URL for a file. Must not perform a request."""
        pass
