"""
GitLab Listing — Fetch every project visible to a source.

Walks the projects API page by page (ascending by id) until a page comes
back empty:

    GET https://<domain>/api/v4/projects?simple=true&page=N&per_page=50
        &order_by=id&sort=asc
    Authorization: Bearer <token>      (only when a token is configured)

Any transport failure, HTTP error status or malformed body aborts the
whole source with ListingError.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

import httpx
from pydantic import ValidationError

from ..errors import ListingError
from ..models.repository import RepositoryRecord
from ..models.source import Source

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 50


def _get_headers(token: Optional[str]) -> Dict[str, str]:
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class GitLabLister:
    """Lists repositories of a source through the GitLab v4 API."""

    def __init__(
        self,
        timeout: int = 30,
        per_page: int = DEFAULT_PER_PAGE,
        client: Optional[httpx.Client] = None,
    ):
        self.timeout = timeout
        self.per_page = per_page
        self._client = client

    def projects_url(self, source: Source) -> str:
        return f"https://{source.domain}/api/v4/projects"

    def fetch_page(self, source: Source, page: int) -> List[RepositoryRecord]:
        """Fetch a single page of projects."""
        params = {
            "simple": "true",
            "page": page,
            "per_page": self.per_page,
            "order_by": "id",
            "sort": "asc",
        }
        client = self._client or httpx
        try:
            resp = client.get(
                self.projects_url(source),
                params=params,
                headers=_get_headers(source.token),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise ListingError(
                str(source), f"page {page}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ListingError(str(source), f"page {page}: {e}") from e
        except ValueError as e:
            raise ListingError(str(source), f"page {page}: invalid JSON: {e}") from e

        if not isinstance(payload, list):
            raise ListingError(str(source), f"page {page}: expected a list of projects")

        try:
            return [RepositoryRecord(**item) for item in payload]
        except (TypeError, ValidationError) as e:
            raise ListingError(str(source), f"page {page}: bad project record: {e}") from e

    def iter_repositories(self, source: Source) -> Iterator[RepositoryRecord]:
        """Yield projects lazily, starting from page 1."""
        page = 1
        while True:
            records = self.fetch_page(source, page)
            if not records:
                return
            logger.debug(f"[listing] {source}: page {page} → {len(records)} repos")
            yield from records
            page += 1

    def list_repositories(self, source: Source) -> List[RepositoryRecord]:
        """
        Fetch every page before returning.

        A failure on any page discards the pages already fetched.
        """
        return list(self.iter_repositories(source))
