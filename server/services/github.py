import asyncio
import base64
import binascii
import logging

import httpx

from config import Settings
from provenance.locator import RepositoryLocator
from provenance.retry import Success, with_retry
from provenance.schemas import CommitInfo, RepositorySnapshot

logger = logging.getLogger(__name__)


class GitHubClient:
    """
    Fetches the metadata sample for one repository from the GitHub REST API.

    Missing files, outages and malformed bodies degrade the snapshot; they
    never fail the gather.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings, sleep=None, rng=None):
        self.client = client
        self.settings = settings
        self.endpoint = settings.github_api_url
        self.headers = {
            "Authorization": f"Bearer {settings.github_token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "VibeCoded-App",
        }
        self.sleep = sleep
        self.rng = rng

    async def _get(self, path: str, label: str, params: dict | None = None):
        url = f"{self.endpoint}{path}"
        return await with_retry(
            lambda: self.client.get(url, headers=self.headers, params=params),
            self.settings.metadata_policy,
            label=label,
            sleep=self.sleep,
            rng=self.rng,
        )

    async def fetch_readme(self, locator: RepositoryLocator) -> str | None:
        outcome = await self._get(f"/repos/{locator.full_name}/readme", f"README {locator.full_name}")
        if not isinstance(outcome, Success):
            return None
        return _decode_content(outcome.response, "README")

    async def fetch_file(self, locator: RepositoryLocator, path: str) -> str | None:
        outcome = await self._get(f"/repos/{locator.full_name}/contents/{path}", f"{path} {locator.full_name}")
        if not isinstance(outcome, Success):
            return None
        return _decode_content(outcome.response, path)

    async def fetch_commits(self, locator: RepositoryLocator) -> list[CommitInfo]:
        limit = self.settings.commit_limit
        outcome = await self._get(
            f"/repos/{locator.full_name}/commits",
            f"commits {locator.full_name}",
            params={"per_page": limit},
        )
        if not isinstance(outcome, Success):
            return []

        try:
            payload = outcome.response.json()
        except ValueError:
            logger.warning(f"Commit list for {locator.full_name} is not JSON")
            return []
        if not isinstance(payload, list):
            logger.warning(f"Commit list for {locator.full_name} has unexpected shape: {type(payload).__name__}")
            return []

        commits = []
        for entry in payload[:limit]:
            if not isinstance(entry, dict):
                continue
            commit = entry.get("commit")
            if not isinstance(commit, dict):
                commit = {}
            author = commit.get("author")
            if not isinstance(author, dict):
                author = {}
            commits.append(CommitInfo(
                message=str(commit.get("message") or ""),
                author=str(author.get("name") or ""),
                date=str(author.get("date") or ""),
            ))
        return commits

    async def gather(self, locator: RepositoryLocator) -> RepositorySnapshot:
        """Fetch README, manifest and recent commits concurrently."""
        manifest_path = self.settings.manifest_path
        readme, manifest, commits = await asyncio.gather(
            self.fetch_readme(locator),
            self.fetch_file(locator, manifest_path),
            self.fetch_commits(locator),
        )
        logger.info(
            f"Gathered {locator.full_name}: readme={'yes' if readme else 'no'}, "
            f"{manifest_path}={'yes' if manifest else 'no'}, commits={len(commits)}"
        )
        return RepositorySnapshot(
            readme=readme,
            manifest=manifest,
            manifest_path=manifest_path,
            commits=commits,
        )


def _decode_content(response: httpx.Response, label: str) -> str | None:
    """Decode a contents-API body ({"content": <base64>, "encoding": "base64"})."""
    try:
        data = response.json()
    except ValueError:
        logger.warning(f"{label}: response is not JSON")
        return None

    # Directory paths return a list of entries instead of a file object
    if not isinstance(data, dict):
        logger.warning(f"{label}: expected a file object, got {type(data).__name__}")
        return None

    content = data.get("content")
    if not content or data.get("encoding") != "base64":
        logger.warning(f"{label}: no base64 content in response")
        return None

    try:
        raw = base64.b64decode(content.replace("\n", ""), validate=True)
    except (binascii.Error, ValueError, AttributeError):
        logger.warning(f"{label}: content is not valid base64")
        return None
    return raw.decode("utf-8", errors="replace")
