# lexiflow/adapters/github_adapter.py
import base64
from typing import Any, Dict, Optional

import httpx
import structlog

from lexiflow.core.domain.exceptions import ContributionError
from lexiflow.core.domain.models import GitHubConfig, PullRequestRef, SourceFile
from lexiflow.shared.resilience import retry_external_api

logger = structlog.get_logger()

GITHUB_API_VERSION = "2022-11-28"


class GitHubSourceHost:
    """
    Adapter for the GitHub REST API (refs, contents, pulls).

    GET requests are retried on transport errors; writes are not, since a
    repeated branch creation or commit is not idempotent. A non-2xx answer
    raises ContributionError naming the failed step.
    """

    def __init__(self, config: GitHubConfig, api_url: str = "https://api.github.com", timeout: float = 15.0):
        self.config = config
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @property
    def _repo_url(self) -> str:
        return f"{self.api_url}/repos/{self.config.owner}/{self.config.repo}"

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    async def _request(
        self,
        step: str,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.request(
                method, f"{self._repo_url}{path}", headers=self.headers, json=json, params=params
            )

        if response.is_error:
            logger.error("github_step_failed", step=step, status=response.status_code)
            raise ContributionError(f"Failed to {step}: HTTP {response.status_code} {_error_message(response)}".rstrip())

        return response.json()

    @retry_external_api
    async def _get(self, step: str, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        return await self._request(step, "GET", path, params=params)

    # --- Interface Implementation ---

    async def get_branch_sha(self, branch: str) -> str:
        data = await self._get("get base branch", f"/git/refs/heads/{branch}")
        return data["object"]["sha"]

    async def create_branch(self, name: str, from_sha: str) -> None:
        await self._request(
            "create branch", "POST", "/git/refs", json={"ref": f"refs/heads/{name}", "sha": from_sha}
        )

    async def get_file(self, path: str, ref: str) -> SourceFile:
        data = await self._get("get lexicon file", f"/contents/{path}", params={"ref": ref})
        content = base64.b64decode(data["content"].replace("\n", "")).decode("utf-8")
        return SourceFile(content=content, sha=data["sha"])

    async def update_file(self, path: str, content: str, message: str, branch: str, sha: str) -> None:
        await self._request(
            "update lexicon file",
            "PUT",
            f"/contents/{path}",
            json={
                "message": message,
                "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
                "sha": sha,
                "branch": branch,
            },
        )

    async def open_pull_request(self, title: str, body: str, head: str, base: str) -> PullRequestRef:
        data = await self._request(
            "create pull request",
            "POST",
            "/pulls",
            json={"title": title, "body": body, "head": head, "base": base},
        )
        return PullRequestRef(number=data["number"], url=data["html_url"])


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return ""
    return payload.get("message", "") if isinstance(payload, dict) else ""
