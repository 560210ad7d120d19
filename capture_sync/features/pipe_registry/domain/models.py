# File: capture_sync/features/pipe_registry/domain/models.py
from dataclasses import dataclass, field
from typing import Optional, Tuple
from urllib.parse import urlparse

from capture_sync.core.errors import CaptureSyncError, ValidationFailure

DEFAULT_BRANCH = "main"


@dataclass(frozen=True)
class RepoRef:
    """
    A parsed repository reference.
      https://github.com/owner/repo                     -> root, branch "main"
      https://github.com/owner/repo/tree/dev/examples/x -> subdirectory "examples/x" on "dev"
    """
    owner: str
    repo_name: str
    is_subdirectory: bool = False
    branch: str = DEFAULT_BRANCH
    sub_path: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo_name}"

    @classmethod
    def parse(cls, repo_ref: str) -> "RepoRef":
        if not isinstance(repo_ref, str) or not repo_ref.strip():
            raise ValidationFailure("Repository reference is empty.")

        parsed = urlparse(repo_ref.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationFailure(f"Not a repository URL: {repo_ref}")

        parts = [p for p in parsed.path.split("/") if p]
        if len(parts) < 2:
            raise ValidationFailure(f"Repository URL needs an owner and a name: {repo_ref}")

        owner, repo_name = parts[0], parts[1]
        if repo_name.endswith(".git"):
            repo_name = repo_name[:-4]

        if len(parts) == 2:
            return cls(owner=owner, repo_name=repo_name)

        # Anything deeper must be /tree/<branch>[/<path>]
        if parts[2] != "tree" or len(parts) < 4:
            raise ValidationFailure(f"Expected '/tree/<branch>/<path>' in {repo_ref}")

        sub_path = "/".join(parts[4:])
        return cls(
            owner=owner,
            repo_name=repo_name,
            is_subdirectory=bool(sub_path),
            branch=parts[3],
            sub_path=sub_path,
        )


@dataclass
class PackageDescriptor:
    """Normalised metadata for one remotely hosted pipe."""
    name: str
    star_count: int
    latest_version: str
    author: str
    author_profile_url: str
    source_url: str
    last_updated: str
    short_description: str
    full_description: str
    main_file_url: Optional[str] = None


@dataclass
class ResolveOutcome:
    """Per-reference result of a batch resolution: exactly one of descriptor/error is set."""
    repo_ref: str
    descriptor: Optional[PackageDescriptor] = None
    error: Optional[CaptureSyncError] = None

    @property
    def ok(self) -> bool:
        return self.descriptor is not None


@dataclass(frozen=True)
class ResolverConfig:
    # Extensions that mark a directory as a runnable pipe
    extensions: Tuple[str, ...] = field(default=(".js", ".ts"))
    main_file_stem: str = "index"
    readme_name: str = "readme.md"
