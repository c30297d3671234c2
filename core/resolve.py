"""Latest-version resolution from remote sources."""

import logging

import httpx

from .compare import normalize_version, parse_version
from .config import UpdaterSettings
from .errors import ResolutionFailure, SourceError
from .models import RemoteVersionInfo, VersionSource

logger = logging.getLogger(__name__)


class VersionProvider:
    """A remote source that can report the latest version of one package."""

    name = "source"
    source = VersionSource.PRIMARY

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        include_prereleases: bool = False,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize provider.

        Args:
            url: Endpoint returning the source's JSON payload
            timeout: Request timeout in seconds
            include_prereleases: Accept prerelease versions as "latest"
            headers: Extra request headers
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.url = url
        self.timeout = timeout
        self.include_prereleases = include_prereleases
        self.headers = headers or {}
        self.transport = transport

    async def resolve(self) -> RemoteVersionInfo:
        raise NotImplementedError

    async def _fetch_json(self) -> object:
        """Fetch the source payload, converting every failure into SourceError."""
        logger.debug("Querying %s at %s", self.name, self.url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                return response.json()

        except httpx.TimeoutException:
            raise SourceError(self.name, f"timeout after {self.timeout}s")
        except httpx.HTTPStatusError as e:
            raise SourceError(self.name, f"HTTP {e.response.status_code} from {self.url}")
        except httpx.HTTPError as e:
            raise SourceError(self.name, f"network error: {e}")
        except ValueError as e:
            raise SourceError(self.name, f"malformed JSON payload: {e}")

    def _checked_version(self, raw: object) -> str:
        version = normalize_version(raw) if isinstance(raw, str) else None
        if parse_version(version) is None:
            raise SourceError(self.name, f"unusable version {raw!r}")
        return version


class GitHubReleasesSource(VersionProvider):
    """Release-listing API; releases arrive newest first."""

    name = "GitHub releases"
    source = VersionSource.PRIMARY

    def __init__(self, url: str, token: str | None = None, **kwargs):
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        super().__init__(url, headers=headers, **kwargs)

    async def resolve(self) -> RemoteVersionInfo:
        payload = await self._fetch_json()
        if not isinstance(payload, list):
            raise SourceError(self.name, "expected a list of releases")

        releases = [
            release
            for release in payload
            if isinstance(release, dict)
            and not release.get("draft")
            and (self.include_prereleases or not release.get("prerelease"))
        ]
        if not releases:
            raise SourceError(self.name, "no published releases")

        latest = releases[0]
        version = self._checked_version(latest.get("tag_name") or latest.get("name"))
        return RemoteVersionInfo(
            version=version,
            source=self.source,
            source_name=self.name,
            notes=latest.get("body") or "",
            published_at=latest.get("published_at") or "unknown",
            info_url=latest.get("html_url") or "",
        )


class NuGetIndexSource(VersionProvider):
    """Package-index API; versions arrive in ascending order."""

    name = "NuGet index"
    source = VersionSource.FALLBACK

    def __init__(self, url: str, package_id: str, **kwargs):
        super().__init__(url, **kwargs)
        self.package_id = package_id

    async def resolve(self) -> RemoteVersionInfo:
        payload = await self._fetch_json()
        versions = payload.get("versions") if isinstance(payload, dict) else None
        if not isinstance(versions, list):
            raise SourceError(self.name, "expected a 'versions' list")

        candidates = [
            v for v in versions
            if isinstance(v, str) and (self.include_prereleases or "-" not in v)
        ]
        if not candidates:
            raise SourceError(self.name, "no versions listed")

        version = self._checked_version(candidates[-1])
        return RemoteVersionInfo(
            version=version,
            source=self.source,
            source_name=self.name,
            info_url=f"https://www.nuget.org/packages/{self.package_id}/{version}",
        )


class RemoteVersionResolver:
    """Try providers in order and return the first one that answers."""

    def __init__(self, providers: list[VersionProvider]):
        self.providers = providers

    async def resolve(self) -> RemoteVersionInfo:
        """Resolve the latest version.

        Providers are queried one after another; a failing provider is logged
        and the next one is tried.

        Returns:
            Version info from the first provider that succeeded

        Raises:
            ResolutionFailure: If every provider failed
        """
        errors: list[SourceError] = []
        for provider in self.providers:
            try:
                info = await provider.resolve()
            except SourceError as e:
                logger.warning("Version source failed: %s", e)
                errors.append(e)
                continue
            except Exception as e:
                logger.warning("Version source %s crashed: %s", provider.name, e)
                errors.append(SourceError(provider.name, f"unexpected error: {e}"))
                continue

            logger.info("Latest version %s from %s", info.version, info.source_name)
            return info

        raise ResolutionFailure(errors)


def build_resolver(
    settings: UpdaterSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RemoteVersionResolver:
    """Create the default primary/fallback resolver for the given settings."""
    common = {
        "timeout": settings.http_timeout,
        "include_prereleases": settings.include_prereleases,
        "transport": transport,
    }
    return RemoteVersionResolver([
        GitHubReleasesSource(settings.releases_url, token=settings.github_token, **common),
        NuGetIndexSource(settings.package_index_url, package_id=settings.package_id, **common),
    ])
