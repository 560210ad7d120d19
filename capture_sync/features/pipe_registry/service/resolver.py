# File: capture_sync/features/pipe_registry/service/resolver.py
import asyncio
import logging
from typing import Iterable, List, Optional

from capture_sync.core.errors import CaptureSyncError, FetchFailure, ParseFailure
from ..data.markdown import html_to_markdown
from ..domain.interfaces import IRepositoryApi
from ..domain.models import PackageDescriptor, RepoRef, ResolveOutcome, ResolverConfig

logger = logging.getLogger(__name__)


class DescriptorResolver:
    """
    Turns a repository reference into a PackageDescriptor.
    Issues 2-4 calls through the repository API per reference; the API is
    expected to cache them.
    """

    def __init__(self, api: IRepositoryApi, config: Optional[ResolverConfig] = None):
        self.api = api
        self.config = config or ResolverConfig()

    async def resolve(self, repo_ref: str) -> PackageDescriptor:
        ref = RepoRef.parse(repo_ref)

        logger.info(f"Fetching repo data for {ref.full_name}")
        repo = await self.api.get_repository(ref.full_name)

        # A malformed payload fails this reference only
        try:
            if ref.is_subdirectory:
                return await self._resolve_subdirectory(ref, repo)
            return await self._resolve_root(ref, repo)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ParseFailure(f"Unexpected payload for {repo_ref}: {e}") from e

    async def _resolve_root(self, ref: RepoRef, repo: dict) -> PackageDescriptor:
        logger.info(f"Fetching README for {ref.full_name}")
        try:
            readme = await self.api.get_readme(ref.full_name)
        except FetchFailure as e:
            if not e.not_found:
                raise
            readme = ""

        version = await self._latest_version(ref)
        return self._descriptor(
            repo,
            name=repo.get("name") or ref.repo_name,
            version=version,
            source_url=repo.get("html_url", ""),
            full_description=html_to_markdown(readme),
        )

    async def _resolve_subdirectory(self, ref: RepoRef, repo: dict) -> PackageDescriptor:
        logger.info(f"Fetching subdirectory contents for {ref.full_name}/{ref.sub_path}")
        contents = await self.api.list_directory(ref.full_name, ref.sub_path, ref.branch)

        files = [item for item in contents
                 if isinstance(item, dict) and item.get("type", "file") == "file"
                 and isinstance(item.get("name"), str)]
        code_files = [f for f in files if f["name"].endswith(self.config.extensions)]
        readme = next((f for f in files if f["name"].lower() == self.config.readme_name), None)

        if not code_files or readme is None:
            raise ParseFailure(f"{ref.full_name}/{ref.sub_path} is not a valid package")

        main_names = {f"{self.config.main_file_stem}{ext}" for ext in self.config.extensions}
        main_file = next((f for f in code_files if f["name"] in main_names), code_files[0])
        main_file_url = self.api.raw_file_url(ref.full_name, ref.branch, f"{ref.sub_path}/{main_file['name']}")

        logger.info(f"Fetching README content for {ref.full_name}/{ref.sub_path}")
        readme_text = await self.api.get_file_content(ref.full_name, f"{ref.sub_path}/{readme['name']}", ref.branch)

        version = await self._latest_version(ref)
        return self._descriptor(
            repo,
            name=ref.sub_path.rstrip("/").split("/")[-1] or repo.get("name", ref.repo_name),
            version=version,
            source_url=f"{repo.get('html_url', '')}/tree/{ref.branch}/{ref.sub_path}",
            full_description=html_to_markdown(readme_text),
            main_file_url=main_file_url,
        )

    async def _latest_version(self, ref: RepoRef) -> str:
        logger.info(f"Fetching latest release for {ref.full_name}")
        return await self.api.get_latest_release_tag(ref.full_name) or ""

    @staticmethod
    def _descriptor(repo: dict, name: str, version: str, source_url: str,
                    full_description: str, main_file_url: Optional[str] = None) -> PackageDescriptor:
        owner = repo.get("owner") or {}
        return PackageDescriptor(
            name=name,
            star_count=int(repo.get("stargazers_count") or 0),
            latest_version=version,
            author=owner.get("login", ""),
            author_profile_url=owner.get("html_url", ""),
            source_url=source_url,
            last_updated=repo.get("updated_at") or "",
            short_description=repo.get("description") or "",
            full_description=full_description,
            main_file_url=main_file_url,
        )

    async def _settle(self, repo_ref: str) -> ResolveOutcome:
        try:
            return ResolveOutcome(repo_ref=repo_ref, descriptor=await self.resolve(repo_ref))
        except CaptureSyncError as e:
            logger.error(f"Error processing {repo_ref}: {e}")
            return ResolveOutcome(repo_ref=repo_ref, error=e)

    async def resolve_all(self, repo_refs: Iterable[str]) -> List[ResolveOutcome]:
        """Resolves every reference concurrently; one failure never affects the others."""
        return list(await asyncio.gather(*(self._settle(ref) for ref in repo_refs)))

    async def resolve_many(self, repo_refs: Iterable[str]) -> List[PackageDescriptor]:
        outcomes = await self.resolve_all(repo_refs)
        return [o.descriptor for o in outcomes if o.ok]


class PipeCatalog:
    """The list of known pipe URLs and their resolved descriptors."""

    def __init__(self, resolver: DescriptorResolver, repo_urls: Optional[Iterable[str]] = None):
        self.resolver = resolver
        self.repo_urls: List[str] = list(repo_urls or [])
        self.pipes: List[PackageDescriptor] = []

    async def refresh(self) -> List[ResolveOutcome]:
        outcomes = await self.resolver.resolve_all(self.repo_urls)
        self.pipes = [o.descriptor for o in outcomes if o.ok]
        return outcomes

    async def add_custom(self, repo_url: str) -> PackageDescriptor:
        """
        Resolves and registers a user-supplied pipe URL.
        Raises ValueError for duplicates and CaptureSyncError if it can't be resolved.
        """
        if repo_url in self.repo_urls:
            raise ValueError("This pipe is already in the list.")

        descriptor = await self.resolver.resolve(repo_url)
        if any(p.name == descriptor.name for p in self.pipes):
            raise ValueError("A pipe with this name already exists.")

        self.repo_urls.append(repo_url)
        self.pipes.append(descriptor)
        return descriptor
