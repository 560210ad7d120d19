import asyncio
import base64

import httpx
import pytest

from capture_sync.core.errors import FetchFailure, ParseFailure, ValidationFailure
from capture_sync.features.cache.service.ttl_cache import TTLCache
from capture_sync.features.pipe_registry.data.github_api import GithubApi
from capture_sync.features.pipe_registry.service.resolver import DescriptorResolver, PipeCatalog

API = "https://api.github.test"
RAW = "https://raw.github.test"


def _encoded(text):
    return {"content": base64.b64encode(text.encode("utf-8")).decode("ascii"), "encoding": "base64"}


def _repo(name="screenpipe", stars=42):
    return {
        "name": name,
        "stargazers_count": stars,
        "owner": {"login": "mediar-ai", "html_url": "https://github.com/mediar-ai"},
        "html_url": f"https://github.com/mediar-ai/{name}",
        "updated_at": "2024-04-30T12:00:00Z",
        "description": "24/7 screen and mic recording",
    }


class FakeGithub:
    """Routes requests by path (+ ?ref) and counts them."""

    def __init__(self):
        self.routes = {
            "/repos/mediar-ai/screenpipe": (200, _repo()),
            "/repos/mediar-ai/screenpipe/readme": (200, _encoded('# screenpipe\n<img src="demo.gif" alt="demo">')),
            "/repos/mediar-ai/screenpipe/releases/latest": (200, {"tag_name": "v0.1.70"}),
            "/repos/mediar-ai/screenpipe/contents/examples/ocr?ref=main": (200, [
                {"name": "helper.js", "type": "file"},
                {"name": "index.js", "type": "file"},
                {"name": "ReadMe.md", "type": "file"},
                {"name": "assets", "type": "dir"},
            ]),
            "/repos/mediar-ai/screenpipe/contents/examples/ocr/ReadMe.md?ref=main": (200, _encoded("# OCR <b>tracker</b>")),
            "/repos/mediar-ai/screenpipe/contents/examples/empty?ref=main": (200, [
                {"name": "notes.txt", "type": "file"},
            ]),
            "/repos/mediar-ai/norelease": (200, _repo("norelease", stars=1)),
            "/repos/mediar-ai/norelease/readme": (404, {"message": "Not Found"}),
            "/repos/mediar-ai/norelease/releases/latest": (404, {"message": "Not Found"}),
        }
        self.requests = []
        self.rate_limited = False

    def __call__(self, request):
        key = request.url.path + (f"?ref={request.url.params['ref']}" if "ref" in request.url.params else "")
        self.requests.append(key)
        if self.rate_limited:
            return httpx.Response(403, json={"message": "API rate limit exceeded"})
        status, body = self.routes.get(key, (404, {"message": "Not Found"}))
        return httpx.Response(status, json=body)


@pytest.fixture
def github():
    return FakeGithub()


@pytest.fixture
def cache(memory_store, clock):
    return TTLCache(memory_store, clock=clock)


@pytest.fixture
def resolver(github, cache):
    api = GithubApi(cache, api_url=API, raw_url=RAW, token="t0ken", transport=httpx.MockTransport(github))
    return DescriptorResolver(api)


def test_resolve_repository_root(resolver):
    pipe = asyncio.run(resolver.resolve("https://github.com/mediar-ai/screenpipe"))

    assert pipe.name == "screenpipe"
    assert pipe.star_count == 42
    assert pipe.latest_version == "v0.1.70"
    assert pipe.author == "mediar-ai"
    assert pipe.author_profile_url == "https://github.com/mediar-ai"
    assert pipe.source_url == "https://github.com/mediar-ai/screenpipe"
    assert pipe.last_updated == "2024-04-30T12:00:00Z"
    assert pipe.short_description == "24/7 screen and mic recording"
    assert pipe.full_description == "# screenpipe\n![demo](demo.gif)"
    assert pipe.main_file_url is None


def test_resolve_subdirectory_prefers_index_file(resolver, github):
    pipe = asyncio.run(resolver.resolve("https://github.com/mediar-ai/screenpipe/tree/main/examples/ocr"))

    assert pipe.name == "ocr"
    assert pipe.main_file_url == f"{RAW}/mediar-ai/screenpipe/main/examples/ocr/index.js"
    assert pipe.source_url == "https://github.com/mediar-ai/screenpipe/tree/main/examples/ocr"
    assert pipe.full_description == "# OCR tracker"
    assert pipe.latest_version == "v0.1.70"
    # The main file itself is never downloaded
    assert not any(r.endswith("index.js?ref=main") for r in github.requests)


def test_subdirectory_without_code_or_readme_is_not_a_package(resolver):
    with pytest.raises(ParseFailure):
        asyncio.run(resolver.resolve("https://github.com/mediar-ai/screenpipe/tree/main/examples/empty"))


def test_missing_readme_and_release_degrade_to_empty(resolver):
    pipe = asyncio.run(resolver.resolve("https://github.com/mediar-ai/norelease"))

    assert pipe.latest_version == ""
    assert pipe.full_description == ""


def test_second_resolution_within_ttl_makes_no_requests(resolver, github):
    asyncio.run(resolver.resolve("https://github.com/mediar-ai/screenpipe"))
    first_count = len(github.requests)

    asyncio.run(resolver.resolve("https://github.com/mediar-ai/screenpipe"))

    assert first_count == 3
    assert len(github.requests) == first_count


def test_rate_limit_after_expiry_serves_stale_metadata(resolver, github, clock):
    asyncio.run(resolver.resolve("https://github.com/mediar-ai/screenpipe"))
    clock.advance(hours=2)
    github.rate_limited = True

    pipe = asyncio.run(resolver.resolve("https://github.com/mediar-ai/screenpipe"))

    assert pipe.star_count == 42
    assert pipe.latest_version == "v0.1.70"


def test_rate_limit_without_cache_is_flagged(resolver, github):
    github.rate_limited = True

    outcomes = asyncio.run(resolver.resolve_all(["https://github.com/mediar-ai/screenpipe"]))

    assert not outcomes[0].ok
    assert isinstance(outcomes[0].error, FetchFailure)
    assert outcomes[0].error.rate_limited is True


def test_batch_failures_do_not_abort_other_references(resolver):
    refs = [
        "https://github.com/mediar-ai/screenpipe",
        "https://github.com/mediar-ai/screenpipe/tree/main/examples/empty",
        "https://github.com/mediar-ai/unknown",
        "not a url",
        "https://github.com/mediar-ai/screenpipe/tree/main/examples/ocr",
    ]

    outcomes = asyncio.run(resolver.resolve_all(refs))
    pipes = asyncio.run(resolver.resolve_many(refs))

    assert [o.ok for o in outcomes] == [True, False, False, False, True]
    assert isinstance(outcomes[1].error, ParseFailure)
    assert isinstance(outcomes[2].error, FetchFailure)
    assert isinstance(outcomes[3].error, ValidationFailure)
    assert [p.name for p in pipes] == ["screenpipe", "ocr"]


def test_token_is_passed_through(github, cache):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return github(request)

    api = GithubApi(cache, api_url=API, token="t0ken", transport=httpx.MockTransport(handler))
    asyncio.run(api.get_repository("mediar-ai/screenpipe"))

    assert seen["auth"] == "Bearer t0ken"


def test_catalog_rejects_duplicate_url_and_name(resolver):
    catalog = PipeCatalog(resolver, ["https://github.com/mediar-ai/screenpipe/tree/main/examples/ocr"])
    asyncio.run(catalog.refresh())

    with pytest.raises(ValueError, match="already in the list"):
        asyncio.run(catalog.add_custom("https://github.com/mediar-ai/screenpipe/tree/main/examples/ocr"))
    with pytest.raises(ValueError, match="name already exists"):
        asyncio.run(catalog.add_custom("https://github.com/mediar-ai/screenpipe/tree/main/examples/ocr/"))

    added = asyncio.run(catalog.add_custom("https://github.com/mediar-ai/screenpipe"))
    assert added.name == "screenpipe"
    assert len(catalog.pipes) == 2


def test_malformed_repository_payload_fails_only_that_reference(resolver, github):
    github.routes["/repos/mediar-ai/weird"] = (200, {**_repo("weird"), "stargazers_count": "n/a"})
    github.routes["/repos/mediar-ai/screenpipe/contents/examples/odd?ref=main"] = (200, [
        {"name": 7, "type": "file"},
        {"name": "index.ts", "type": "file"},
        {"name": "README.md", "type": "file"},
    ])
    github.routes["/repos/mediar-ai/screenpipe/contents/examples/odd/README.md?ref=main"] = (200, _encoded("odd"))
    refs = [
        "https://github.com/mediar-ai/screenpipe",
        "https://github.com/mediar-ai/weird",
        "https://github.com/mediar-ai/screenpipe/tree/main/examples/odd",
    ]

    outcomes = asyncio.run(resolver.resolve_all(refs))

    assert [o.ok for o in outcomes] == [True, False, True]
    assert isinstance(outcomes[1].error, ParseFailure)
    assert outcomes[2].descriptor.main_file_url.endswith("/examples/odd/index.ts")
