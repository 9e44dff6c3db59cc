# lexiflow/core/ports/source_host.py
from typing import Protocol

from lexiflow.core.domain.models import PullRequestRef, SourceFile


class ISourceHost(Protocol):
    """
    Port for the hosted version-control API holding the canonical lexicon.
    Every method raises ContributionError when the host rejects the call.
    """

    async def get_branch_sha(self, branch: str) -> str:
        ...

    async def create_branch(self, name: str, from_sha: str) -> None:
        ...

    async def get_file(self, path: str, ref: str) -> SourceFile:
        ...

    async def update_file(self, path: str, content: str, message: str, branch: str, sha: str) -> None:
        ...

    async def open_pull_request(self, title: str, body: str, head: str, base: str) -> PullRequestRef:
        ...
