"""
GitHub REST API Client.

This module provides the read operations the catalog needs from GitHub.

Key features:
- Async requests through httpx
- Repository listing with Link-header pagination
- Branch head lookup and zipball download
- Rate-limit handling: one retry after the advertised backoff for the
  primary quota, no retry for secondary (abuse-detection) limits
- One retry for transport errors (DNS, connect, timeout)
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from scaffolder import __version__
from scaffolder.errors import (
    BranchNotFound,
    DownloadFailed,
    RateLimited,
    RemoteUnavailable,
    RepositoryNotFound,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_RATE_LIMIT_BACKOFF = 60.0

_TOKEN_HINT = (
    "Please supply an auth token with the `--gh-auth-token` option "
    "or persist one with `scaf --config-set gh_auth_token=<token>`."
)


@dataclass
class RateLimitSignal:
    """
    A rate-limit answer from the API.

    Attributes:
        retry_after: Seconds to wait before the request may be repeated
        secondary: True for the abuse-detection tier, which is never retried
    """

    retry_after: float
    secondary: bool = False


def _parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def rate_limit_signal(
    response: httpx.Response, now: float | None = None
) -> RateLimitSignal | None:
    """
    Detect a rate-limit answer.

    Args:
        response: API response
        now: Current epoch seconds (defaults to time.time())

    Returns:
        RateLimitSignal, or None if the response is not rate limited
    """
    if response.status_code not in (403, 429):
        return None

    headers = response.headers
    retry_after = _parse_float(headers.get("retry-after"))

    if headers.get("x-ratelimit-remaining") == "0":
        if retry_after is None:
            reset = _parse_float(headers.get("x-ratelimit-reset"))
            if reset is None:
                retry_after = DEFAULT_RATE_LIMIT_BACKOFF
            else:
                current = time.time() if now is None else now
                retry_after = max(0.0, reset - current)
        return RateLimitSignal(retry_after=retry_after)

    if (
        retry_after is not None
        or response.status_code == 429
        or "secondary rate limit" in response.text.lower()
    ):
        return RateLimitSignal(
            retry_after=retry_after if retry_after is not None else DEFAULT_RATE_LIMIT_BACKOFF,
            secondary=True,
        )

    return None


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return ""
    if isinstance(data, dict):
        return str(data.get("message", ""))
    return ""


class GitHubClient:
    """
    Async GitHub API client.

    Example:
        async with GitHubClient(token=settings.gh_auth_token) as client:
            repos = await client.list_org_repos("ui5-community")
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        download_timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize GitHubClient.

        Args:
            token: Optional API token
            base_url: API base URL
            timeout: Request timeout in seconds
            download_timeout: Timeout for archive downloads in seconds
            transport: Optional httpx transport (used by tests)
            sleep: Coroutine function used to wait for rate-limit backoff
        """
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": f"scaffolder/{__version__}",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.download_timeout = download_timeout
        self._sleep = sleep
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request applying the retry policy.

        Raises:
            RemoteUnavailable: If the transport fails twice
            RateLimited: If the API keeps signaling quota exhaustion
        """
        transport_retried = False
        rate_limit_retried = False

        while True:
            try:
                response = await self.client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                if transport_retried:
                    raise RemoteUnavailable(f"Failed to connect to GitHub: {e}") from e
                logger.debug("Request %s %s failed (%s), retrying once", method, url, e)
                transport_retried = True
                continue

            signal = rate_limit_signal(response)
            if signal is None:
                return response

            if signal.secondary:
                raise RateLimited(
                    f"Hit the GitHub API limit again! {_TOKEN_HINT}",
                    retry_after=signal.retry_after,
                )

            if rate_limit_retried:
                raise RateLimited(
                    f"Hit the GitHub API limit! Request quota exhausted. {_TOKEN_HINT}",
                    retry_after=signal.retry_after,
                )

            logger.warning(
                "Hit the GitHub API limit! Request quota exhausted for this request. "
                "Retrying after %.0f seconds.",
                signal.retry_after,
            )
            await self._sleep(signal.retry_after)
            rate_limit_retried = True

    def _raise_for_status(
        self,
        response: httpx.Response,
        context: str,
        not_found: type[RepositoryNotFound] = RepositoryNotFound,
    ) -> None:
        if response.is_success:
            return

        message = _error_message(response)
        if response.status_code == 404:
            if message.lower() == "branch not found":
                raise BranchNotFound(f"{context}: branch not found")
            raise not_found(f"{context}: not found")

        detail = f" ({message})" if message else ""
        raise RemoteUnavailable(f"{context}: HTTP {response.status_code}{detail}")

    def _json(self, response: httpx.Response, context: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailable(f"{context}: invalid JSON response") from e

    async def _list_repos(self, url: str, context: str) -> list[dict[str, Any]]:
        repos: list[dict[str, Any]] = []
        next_url: str | None = url
        params: dict[str, Any] | None = {"per_page": 100}

        while next_url:
            response = await self._request("GET", next_url, params=params)
            self._raise_for_status(response, context)

            data = self._json(response, context)
            if not isinstance(data, list):
                raise RemoteUnavailable(f"{context}: unexpected response payload")
            repos.extend(item for item in data if isinstance(item, dict))

            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            params = None

        return repos

    async def list_org_repos(self, org: str) -> list[dict[str, Any]]:
        """
        List all repositories of an organization.

        Raises:
            RepositoryNotFound: If the organization does not exist
            RemoteUnavailable: If the request fails
            RateLimited: If the quota is exhausted
        """
        return await self._list_repos(
            f"/orgs/{quote(org, safe='')}/repos",
            f"Listing repositories of organization '{org}'",
        )

    async def list_user_repos(self, user: str) -> list[dict[str, Any]]:
        """
        List all repositories of a user.

        Raises:
            RepositoryNotFound: If the user does not exist
            RemoteUnavailable: If the request fails
            RateLimited: If the quota is exhausted
        """
        return await self._list_repos(
            f"/users/{quote(user, safe='')}/repos",
            f"Listing repositories of user '{user}'",
        )

    async def get_branch(self, owner: str, repo: str, branch: str) -> dict[str, Any]:
        """
        Fetch branch metadata including its head commit.

        Raises:
            RepositoryNotFound: If the repository does not exist
            BranchNotFound: If the branch does not exist
            RemoteUnavailable: If the request fails
        """
        context = f"Retrieving branch '{branch}' of {owner}/{repo}"
        response = await self._request(
            "GET",
            f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
            f"/branches/{quote(branch, safe='')}",
        )
        self._raise_for_status(response, context)

        data = self._json(response, context)
        if not isinstance(data, dict):
            raise RemoteUnavailable(f"{context}: unexpected response payload")
        return data

    async def download_zipball(self, owner: str, repo: str, ref: str) -> bytes:
        """
        Download a zip snapshot of a repository at a commit.

        Returns:
            Raw archive bytes

        Raises:
            DownloadFailed: If the archive cannot be downloaded
            RateLimited: If the quota is exhausted
        """
        url = (
            f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
            f"/zipball/{quote(ref, safe='')}"
        )
        try:
            response = await self._request("GET", url, timeout=self.download_timeout)
        except RemoteUnavailable as e:
            raise DownloadFailed(f"Failed to download {owner}/{repo}@{ref}: {e}") from e

        if not response.is_success:
            raise DownloadFailed(
                f"Failed to download {owner}/{repo}@{ref}: HTTP {response.status_code}"
            )

        return response.content
