"""
Solved-problem readers for external coding platforms (infra adapters).

NOTE: Import them directly from their module (e.g.
`from infra.platforms.leetcode import LeetCodeSource`) so httpx is only
needed where a source is actually used.
"""

__all__ = []
