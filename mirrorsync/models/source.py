"""
Source Models — Pydantic schemas for the mirror configuration.

A config file lists the hosting accounts to mirror and where to put them:

    destination: /srv/mirrors
    sources:
      - domain: gitlab.example.com
        username: backup-bot
        token_env: GITLAB_TOKEN
        exclude: ["*/archived/*"]
        include: []
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Source(BaseModel):
    """A remote hosting account whose repositories are mirrored."""

    model_config = ConfigDict(frozen=True)

    domain: str
    username: Optional[str] = None
    token: Optional[str] = None  # bearer token for the listing API
    token_env: Optional[str] = None  # env var holding the token
    exclude: List[str] = Field(default_factory=list)
    include: List[str] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        """Human-readable identity: user@domain or just domain."""
        if self.username:
            return f"{self.username}@{self.domain}"
        return self.domain

    def __str__(self) -> str:
        return self.display_name


class MirrorConfig(BaseModel):
    """The whole mirror configuration file."""

    sources: List[Source] = Field(default_factory=list)
    destination: str
    workers: int = Field(default=1, ge=1)
    git_timeout: Optional[int] = Field(default=None, gt=0)  # seconds per git command
    api_timeout: int = Field(default=30, gt=0)
    per_page: int = Field(default=50, ge=1, le=100)
