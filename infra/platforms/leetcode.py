from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from progress_engine.verification import SolvedProblemsSource

logger = logging.getLogger(__name__)

LEETCODE_GRAPHQL_URL = "https://leetcode.com/graphql"

RECENT_AC_QUERY = """
query recentAcSubmissions($username: String!, $limit: Int!) {
  recentAcSubmissionList(username: $username, limit: $limit) {
    titleSlug
  }
}
"""


class LeetCodeSource(SolvedProblemsSource):
    """
    Reads a user's recently accepted submissions from LeetCode's public
    GraphQL endpoint. Only the most recent `limit` accepted problems are
    visible there.
    """

    def __init__(
        self,
        url: str = LEETCODE_GRAPHQL_URL,
        limit: int = 50,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.limit = limit
        self.timeout = timeout
        self._client = client

    async def solved_by_user(self, username: str) -> List[str]:
        payload = {"query": RECENT_AC_QUERY, "variables": {"username": username, "limit": self.limit}}
        if self._client is not None:
            resp = await self._client.post(self.url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.url, json=payload)
        resp.raise_for_status()
        body = resp.json()
        if body.get("errors"):
            raise ValueError(f"LeetCode query failed for {username}: {body['errors']}")
        submissions = (body.get("data") or {}).get("recentAcSubmissionList") or []
        slugs = [s["titleSlug"] for s in submissions if isinstance(s, dict) and s.get("titleSlug")]
        logger.debug("leetcode solved user=%s count=%s", username, len(slugs))
        return slugs
