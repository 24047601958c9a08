"""Every module type the bot knows how to build, in registration order."""

from __future__ import annotations

from richard.bot.module import Module
from richard.bot.triggers import Triggers
from richard.modules.down_detectors import DownDetectors
from richard.modules.endpoints import Endpoints
from richard.modules.feeds import Feeds
from richard.modules.github_orgs import GithubOrgs
from richard.modules.github_repos import GithubRepos
from richard.modules.hello import Hello
from richard.modules.help import Help
from richard.modules.ollama import Ollama
from richard.modules.ping import Ping
from richard.modules.roll import Roll
from richard.modules.telegram import Telegram
from richard.modules.webex import Webex
from richard.modules.webpages import Webpages

KNOWN_MODULES: tuple[type[Module], ...] = (
    Webex,
    Telegram,
    Ping,
    Help,
    DownDetectors,
    Endpoints,
    GithubOrgs,
    GithubRepos,
    Triggers,
    Hello,
    Ollama,
    Feeds,
    Roll,
    Webpages,
)

__all__ = ["KNOWN_MODULES"]
