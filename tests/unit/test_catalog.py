"""
Tests for the Plugin Catalog.

This test suite covers:
1. Prefix filtering and plugin name derivation
2. Repository listing with pagination
3. Additional source merging with organization -> user fallback
4. Rate-limit handling (single retry, secondary limit, second signal)
5. Transport error retry
6. Head revision resolution
"""

import httpx
import pytest

from scaffolder.catalog.catalog import filter_plugins, list_plugins
from scaffolder.catalog.github import GitHubClient, rate_limit_signal
from scaffolder.catalog.models import CatalogQuery, PluginRef, Revision
from scaffolder.catalog.resolver import resolve_head
from scaffolder.errors import (
    BranchNotFound,
    DownloadFailed,
    RateLimited,
    RemoteUnavailable,
    RepositoryNotFound,
)

API_URL = "https://api.github.test"


def repo(name, owner="ui5-community", branch="main"):
    return {"name": name, "owner": {"login": owner}, "default_branch": branch}


def make_client(handler, sleeps=None):
    async def fake_sleep(seconds):
        if sleeps is not None:
            sleeps.append(seconds)

    return GitHubClient(
        base_url=API_URL,
        transport=httpx.MockTransport(handler),
        sleep=fake_sleep,
    )


class TestPrefixFiltering:
    """Test naming-convention filtering."""

    def test_filter_keeps_prefixed_repositories(self):
        """Should keep only repositories with the prefix and strip it."""
        query = CatalogQuery(owner="ui5-community", name_prefix="generator-ui5-")
        repos = [
            repo("generator-ui5-foo"),
            repo("generator-ui5-bar", branch="develop"),
            repo("other-repo"),
        ]

        plugins = filter_plugins(repos, query)

        assert [p.plugin_name for p in plugins] == ["foo", "bar"]
        assert plugins[0] == PluginRef(
            owner="ui5-community",
            repository_name="generator-ui5-foo",
            default_branch="main",
            plugin_name="foo",
        )
        assert plugins[1].default_branch == "develop"

    def test_filter_skips_bare_prefix(self):
        """Should skip a repository named exactly like the prefix."""
        query = CatalogQuery(owner="org", name_prefix="generator-")
        plugins = filter_plugins([repo("generator-"), repo("generator-x")], query)

        assert [p.plugin_name for p in plugins] == ["x"]

    def test_filter_skips_hidden_plugin_names(self):
        """Should skip repositories whose plugin name starts with a dot."""
        query = CatalogQuery(owner="org", name_prefix="generator-ui5-")
        repos = [repo("generator-ui5-.x"), repo("generator-ui5-.."), repo("generator-ui5-ok")]

        plugins = filter_plugins(repos, query)

        assert [p.plugin_name for p in plugins] == ["ok"]

    def test_filter_falls_back_to_query_owner(self):
        """Should use the query owner when the payload has none."""
        query = CatalogQuery(owner="org", name_prefix="generator-")
        plugins = filter_plugins([{"name": "generator-x"}], query)

        assert plugins[0].owner == "org"
        assert plugins[0].default_branch == "main"


class TestListPlugins:
    """Test catalog listing against the API."""

    @pytest.mark.asyncio
    async def test_list_plugins_prefix_filtering(self):
        """Should return foo and bar and exclude other-repo."""

        def handler(request):
            assert request.url.path == "/orgs/ui5-community/repos"
            return httpx.Response(
                200,
                json=[
                    repo("generator-ui5-foo"),
                    repo("generator-ui5-bar"),
                    repo("other-repo"),
                ],
            )

        async with make_client(handler) as client:
            plugins = await list_plugins(
                client, CatalogQuery("ui5-community", "generator-ui5-")
            )

        assert sorted(p.plugin_name for p in plugins) == ["bar", "foo"]

    @pytest.mark.asyncio
    async def test_list_follows_pagination(self):
        """Should follow the Link header to later pages."""
        pages = []

        def handler(request):
            page = request.url.params.get("page", "1")
            pages.append(page)
            if page == "1":
                return httpx.Response(
                    200,
                    json=[repo("generator-ui5-one")],
                    headers={
                        "Link": f'<{API_URL}/orgs/org/repos?per_page=100&page=2>; rel="next"'
                    },
                )
            return httpx.Response(200, json=[repo("generator-ui5-two")])

        async with make_client(handler) as client:
            plugins = await list_plugins(client, CatalogQuery("org", "generator-ui5-"))

        assert pages == ["1", "2"]
        assert [p.plugin_name for p in plugins] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_additional_source_is_merged(self):
        """Should append the plugins of the additional organization."""

        def handler(request):
            if request.url.path == "/orgs/main-org/repos":
                return httpx.Response(200, json=[repo("generator-ui5-a", "main-org")])
            if request.url.path == "/orgs/extra-org/repos":
                return httpx.Response(200, json=[repo("generator-b", "extra-org")])
            return httpx.Response(404, json={"message": "Not Found"})

        async with make_client(handler) as client:
            plugins = await list_plugins(
                client,
                CatalogQuery("main-org", "generator-ui5-"),
                CatalogQuery("extra-org", "generator-"),
            )

        assert [(p.owner, p.plugin_name) for p in plugins] == [
            ("main-org", "a"),
            ("extra-org", "b"),
        ]

    @pytest.mark.asyncio
    async def test_additional_source_falls_back_to_user(self):
        """Should retry the additional query as a user listing."""
        paths = []

        def handler(request):
            paths.append(request.url.path)
            if request.url.path == "/orgs/main-org/repos":
                return httpx.Response(200, json=[])
            if request.url.path == "/users/someone/repos":
                return httpx.Response(200, json=[repo("generator-mine", "someone")])
            return httpx.Response(404, json={"message": "Not Found"})

        async with make_client(handler) as client:
            plugins = await list_plugins(
                client,
                CatalogQuery("main-org", "generator-ui5-"),
                CatalogQuery("someone", "generator-"),
            )

        assert paths == [
            "/orgs/main-org/repos",
            "/orgs/someone/repos",
            "/users/someone/repos",
        ]
        assert [p.plugin_name for p in plugins] == ["mine"]

    @pytest.mark.asyncio
    async def test_additional_source_failing_twice(self):
        """Should surface RemoteUnavailable when both listings fail."""

        def handler(request):
            if request.url.path == "/orgs/main-org/repos":
                return httpx.Response(200, json=[])
            return httpx.Response(500, json={"message": "Server Error"})

        async with make_client(handler) as client:
            with pytest.raises(RemoteUnavailable, match="organization or user"):
                await list_plugins(
                    client,
                    CatalogQuery("main-org", "generator-ui5-"),
                    CatalogQuery("ghost", "generator-"),
                )

    @pytest.mark.asyncio
    async def test_primary_source_has_no_user_fallback(self):
        """Should not retry the primary query as a user listing."""
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(404, json={"message": "Not Found"})

        async with make_client(handler) as client:
            with pytest.raises(RepositoryNotFound):
                await list_plugins(client, CatalogQuery("someone", "generator-ui5-"))

        assert paths == ["/orgs/someone/repos"]


class TestRateLimiting:
    """Test the rate-limit policy."""

    @pytest.mark.asyncio
    async def test_primary_limit_retries_once_after_backoff(self):
        """Should wait the advertised delay and retry exactly once."""
        responses = [
            httpx.Response(
                403,
                headers={"x-ratelimit-remaining": "0", "retry-after": "7"},
                json={"message": "API rate limit exceeded"},
            ),
            httpx.Response(200, json=[repo("generator-ui5-foo")]),
        ]
        requests = []
        sleeps = []

        def handler(request):
            requests.append(request)
            return responses.pop(0)

        async with make_client(handler, sleeps) as client:
            repos = await client.list_org_repos("org")

        assert len(requests) == 2
        assert sleeps == [7.0]
        assert repos[0]["name"] == "generator-ui5-foo"

    @pytest.mark.asyncio
    async def test_second_signal_is_not_retried(self):
        """Should surface RateLimited when the retried request is limited again."""
        requests = []
        sleeps = []

        def handler(request):
            requests.append(request)
            return httpx.Response(
                429,
                headers={"x-ratelimit-remaining": "0", "retry-after": "3"},
                json={"message": "API rate limit exceeded"},
            )

        async with make_client(handler, sleeps) as client:
            with pytest.raises(RateLimited, match="gh-auth-token") as excinfo:
                await client.list_org_repos("org")

        assert len(requests) == 2
        assert sleeps == [3.0]
        assert excinfo.value.retry_after == 3.0

    @pytest.mark.asyncio
    async def test_secondary_limit_is_not_retried(self):
        """Should not retry an abuse-detection limit."""
        requests = []
        sleeps = []

        def handler(request):
            requests.append(request)
            return httpx.Response(
                403,
                headers={"retry-after": "60", "x-ratelimit-remaining": "4000"},
                json={"message": "You have exceeded a secondary rate limit."},
            )

        async with make_client(handler, sleeps) as client:
            with pytest.raises(RateLimited):
                await client.list_org_repos("org")

        assert len(requests) == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_rate_limit_is_not_turned_into_user_fallback(self):
        """Should not retry the additional query as a user when rate limited."""
        paths = []

        def handler(request):
            paths.append(request.url.path)
            if request.url.path == "/orgs/main-org/repos":
                return httpx.Response(200, json=[])
            return httpx.Response(
                403, headers={"retry-after": "30"}, json={"message": "secondary rate limit"}
            )

        async with make_client(handler) as client:
            with pytest.raises(RateLimited):
                await list_plugins(
                    client,
                    CatalogQuery("main-org", "generator-ui5-"),
                    CatalogQuery("extra", "generator-"),
                )

        assert "/users/extra/repos" not in paths

    def test_signal_uses_reset_header(self):
        """Should derive the backoff from x-ratelimit-reset."""
        response = httpx.Response(
            403, headers={"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1100"}
        )

        signal = rate_limit_signal(response, now=1000.0)

        assert signal is not None
        assert signal.retry_after == 100.0
        assert signal.secondary is False

    def test_plain_forbidden_is_not_a_rate_limit(self):
        """Should not treat an ordinary 403 as a rate limit."""
        response = httpx.Response(403, json={"message": "Resource not accessible"})

        assert rate_limit_signal(response) is None


class TestTransportErrors:
    """Test transport error handling."""

    @pytest.mark.asyncio
    async def test_transport_error_retried_once(self):
        """Should retry a failed connection once."""
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=[])

        async with make_client(handler) as client:
            assert await client.list_org_repos("org") == []

        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_transport_error_surfaces_remote_unavailable(self):
        """Should raise RemoteUnavailable after the retry fails."""

        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        async with make_client(handler) as client:
            with pytest.raises(RemoteUnavailable):
                await client.list_org_repos("org")

    @pytest.mark.asyncio
    async def test_download_failure(self):
        """Should raise DownloadFailed when the archive cannot be fetched."""

        def handler(request):
            raise httpx.ReadError("reset", request=request)

        async with make_client(handler) as client:
            with pytest.raises(DownloadFailed):
                await client.download_zipball("org", "repo", "a" * 40)


class TestResolveHead:
    """Test head revision resolution."""

    REF = PluginRef(
        owner="ui5-community",
        repository_name="generator-ui5-foo",
        default_branch="main",
        plugin_name="foo",
    )

    @pytest.mark.asyncio
    async def test_resolve_head(self):
        """Should return the head commit of the default branch."""
        sha = "0123456789abcdef0123456789abcdef01234567"

        def handler(request):
            assert request.url.path == "/repos/ui5-community/generator-ui5-foo/branches/main"
            return httpx.Response(200, json={"name": "main", "commit": {"sha": sha}})

        async with make_client(handler) as client:
            revision = await resolve_head(client, self.REF)

        assert revision == Revision(sha)
        assert revision.short == "0123456"

    @pytest.mark.asyncio
    async def test_resolve_head_missing_branch(self):
        """Should raise BranchNotFound for an unknown branch."""

        def handler(request):
            return httpx.Response(404, json={"message": "Branch not found"})

        async with make_client(handler) as client:
            with pytest.raises(BranchNotFound):
                await resolve_head(client, self.REF)

    @pytest.mark.asyncio
    async def test_resolve_head_missing_repository(self):
        """Should raise RepositoryNotFound for an unknown repository."""

        def handler(request):
            return httpx.Response(404, json={"message": "Not Found"})

        async with make_client(handler) as client:
            with pytest.raises(RepositoryNotFound) as excinfo:
                await resolve_head(client, self.REF)

        assert not isinstance(excinfo.value, BranchNotFound)

    @pytest.mark.asyncio
    async def test_resolve_head_invalid_sha(self):
        """Should reject a payload without a usable commit id."""

        def handler(request):
            return httpx.Response(200, json={"commit": {"sha": "../../etc"}})

        async with make_client(handler) as client:
            with pytest.raises(RemoteUnavailable, match="no valid head commit"):
                await resolve_head(client, self.REF)


class TestRevision:
    """Test the Revision value type."""

    def test_revision_rejects_non_hex(self):
        """Should reject identifiers that are not commit ids."""
        with pytest.raises(ValueError):
            Revision("not-a-sha")
        with pytest.raises(ValueError):
            Revision("")
        with pytest.raises(ValueError):
            Revision("abcdef1\n")

    def test_revision_str(self):
        """Should render as the sha."""
        assert str(Revision("abcdef1")) == "abcdef1"
