"""A small GitHub REST client for releases and repository lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import requests

API_URL = "https://api.github.com"
_TIMEOUT = 30


class GitHubError(Exception):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class Asset:
    """A downloadable file attached to a release."""

    name: str
    browser_download_url: str = ""
    size: int = 0


@dataclass
class Release:
    """A published release of a repository."""

    tag_name: str
    name: str = ""
    prerelease: bool = False
    published_at: datetime | None = None
    assets: list[Asset] = field(default_factory=list)


def _parse_time(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_release(data: dict[str, Any]) -> Release:
    """Build a :class:`Release` from a GitHub API release object."""
    assets = [
        Asset(
            name=item.get("name") or "",
            browser_download_url=item.get("browser_download_url") or "",
            size=item.get("size") or 0,
        )
        for item in data.get("assets") or []
    ]
    return Release(
        tag_name=data.get("tag_name") or "",
        name=data.get("name") or "",
        prerelease=bool(data.get("prerelease")),
        published_at=_parse_time(data.get("published_at")),
        assets=assets,
    )


class GitHubClient:
    """Access to the GitHub API, authenticated when a token is given."""

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str = API_URL,
        session: requests.Session | None = None,
        timeout: float = _TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["Accept"] = "application/vnd.github+json"
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise GitHubError(str(exc)) from exc
        if not response.ok:
            try:
                message = response.json().get("message", "")
            except (ValueError, AttributeError):
                message = response.reason or ""
            raise GitHubError(
                f"GET {url}: {response.status_code} {message}".rstrip(),
                response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubError(f"GET {url}: invalid JSON response") from exc

    def get_latest_release(
        self, owner: str, repo: str, include_prereleases: bool = False
    ) -> Release:
        """Return the newest release, or the newest stable one unless pre-releases are wanted."""
        if include_prereleases:
            try:
                releases = self._get(f"/repos/{owner}/{repo}/releases", {"per_page": 1})
            except GitHubError as exc:
                raise GitHubError(f"could not fetch releases: {exc}", exc.status) from exc
            if not releases:
                raise GitHubError(f"no releases found for {owner}/{repo}")
            return parse_release(releases[0])
        try:
            data = self._get(f"/repos/{owner}/{repo}/releases/latest")
        except GitHubError as exc:
            if exc.status == 404:
                raise GitHubError(
                    "no stable releases found (latest may be a pre-release)", 404
                ) from exc
            raise GitHubError(f"could not fetch latest release: {exc}", exc.status) from exc
        return parse_release(data)

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> Release:
        """Return the release with the given tag."""
        try:
            data = self._get(f"/repos/{owner}/{repo}/releases/tags/{tag}")
        except GitHubError as exc:
            raise GitHubError(
                f"could not get release by tag '{tag}': {exc}", exc.status
            ) from exc
        return parse_release(data)

    def list_releases(self, owner: str, repo: str, limit: int) -> list[Release]:
        """Return up to ``limit`` of the most recent releases."""
        try:
            data = self._get(f"/repos/{owner}/{repo}/releases", {"per_page": limit})
        except GitHubError as exc:
            raise GitHubError(f"could not list releases: {exc}", exc.status) from exc
        return [parse_release(item) for item in data]

    def search_repos(self, query: str, limit: int) -> dict[str, Any]:
        """Search repositories, most starred first, and return the raw result."""
        params = {"q": query, "sort": "stars", "order": "desc", "per_page": limit}
        try:
            return self._get("/search/repositories", params)
        except GitHubError as exc:
            raise GitHubError(f"could not search repositories: {exc}", exc.status) from exc

    def get_repo(self, owner: str, repo: str) -> dict[str, Any]:
        """Return the raw repository information."""
        try:
            return self._get(f"/repos/{owner}/{repo}")
        except GitHubError as exc:
            raise GitHubError(f"could not get repo info: {exc}", exc.status) from exc