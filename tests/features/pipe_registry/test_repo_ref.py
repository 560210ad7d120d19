import pytest

from capture_sync.core.errors import ValidationFailure
from capture_sync.features.pipe_registry.domain.models import RepoRef
from capture_sync.features.pipe_registry.data.markdown import html_to_markdown


def test_root_reference_defaults_to_main():
    ref = RepoRef.parse("https://host/owner/repo")

    assert (ref.owner, ref.repo_name) == ("owner", "repo")
    assert ref.branch == "main"
    assert ref.is_subdirectory is False
    assert ref.full_name == "owner/repo"


def test_subdirectory_reference_carries_branch_and_path():
    ref = RepoRef.parse("https://host/owner/repo/tree/dev/examples/foo")

    assert ref.branch == "dev"
    assert ref.sub_path == "examples/foo"
    assert ref.is_subdirectory is True


def test_trailing_slash_and_git_suffix_are_ignored():
    assert RepoRef.parse("https://github.com/owner/repo.git/") == RepoRef(owner="owner", repo_name="repo")


@pytest.mark.parametrize("bad", [
    "",
    "not a url",
    "ftp://host/owner/repo",
    "https://host/owner",
    "https://host/owner/repo/blob/main/file.js",
    "https://host/owner/repo/tree",
])
def test_malformed_references_fail_validation(bad):
    with pytest.raises(ValidationFailure):
        RepoRef.parse(bad)


def test_html_images_become_markdown_and_other_tags_are_stripped():
    html = '<p align="center"><img src="https://x/logo.png" alt="logo" width="200"/></p>\n<b>fast</b> pipe'

    assert html_to_markdown(html) == "![logo](https://x/logo.png)\nfast pipe"


def test_image_without_alt():
    assert html_to_markdown('<img src="a.png">') == "![](a.png)"
