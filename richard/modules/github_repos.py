from __future__ import annotations

from typing import Optional

import httpx
import structlog

from richard.bot.module import Message, ModuleParam
from richard.config import Environment
from richard.modules import github
from richard.modules.base import HttpModule

logger = structlog.get_logger(__name__)


class GithubRepos(HttpModule):
    """Announces new releases of individually configured repositories."""

    name = "github_repos"

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        super().__init__(env, client)
        token = env.require("GITHUB_TOKEN")
        self.repos: dict[str, github.GithubRepo] = {}
        for entry in env.indexed("GITHUB_REPOS", "FULLNAME"):
            full_name = entry["FULLNAME"]
            logger.info("github repo configured", repo=full_name)
            self.repos[full_name] = github.GithubRepo(full_name, self.client, token)
        if not self.repos:
            logger.warning("github_repos module enabled but no configuration provided")

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return github.params()

    def variation_cooldowns(self) -> list[float]:
        return [3600.0]

    async def run_variation(self, index: int) -> Optional[list[Message]]:
        messages: list[Message] = []
        for repo in self.repos.values():
            messages.extend(await repo.run() or [])
        return messages or None
