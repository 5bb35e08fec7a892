"""
app/providers/social.py

Social-engagement provider clients, one per network.
"""

from __future__ import annotations

from typing import Any

from app.domain.comparison import parse_datetime
from app.providers.base import BaseProviderClient

_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class SocialEngagementClient(BaseProviderClient):
    """
    ``engagement(handle) -> {profile, engagement: {summary, posting_pattern}}``.

    Subclasses only differ in how the remote profile endpoint is addressed.
    """

    def fetch(self, target: str) -> dict[str, Any]:
        handle = target.strip().lstrip("@")
        payload = self._request_json(
            method="GET",
            url=self.profile_url(handle),
            params={"access_token": self.endpoint.api_key, "handle": handle},
        )
        body = self._require_mapping(payload)
        profile = body.get("profile") if isinstance(body.get("profile"), dict) else body
        posts = [post for post in body.get("posts", []) if isinstance(post, dict)]

        followers = self._as_int(profile.get("followers", profile.get("followers_count")))
        return {
            "profile": {
                "handle": handle,
                "name": profile.get("name") or handle,
                "followers": followers,
                "posts_count": self._as_int(profile.get("media_count", profile.get("posts_count"))),
            },
            "engagement": {
                "summary": self._summary(posts, followers),
                "posting_pattern": self._posting_pattern(posts),
            },
        }

    def profile_url(self, handle: str) -> str:
        return f"{self.endpoint.base_url.rstrip('/')}/{handle}"

    def _summary(self, posts: list[dict[str, Any]], followers: int | None) -> dict[str, Any]:
        interactions = [
            (self._as_int(post.get("likes")) or 0) + (self._as_int(post.get("comments")) or 0)
            for post in posts
        ]
        average = round(sum(interactions) / len(interactions), 2) if interactions else None
        rate = None
        if average is not None and followers:
            rate = round(average / followers * 100, 3)
        return {
            "posts_analyzed": len(posts),
            "average_interactions": average,
            "engagement_rate": rate,
        }

    @staticmethod
    def _posting_pattern(posts: list[dict[str, Any]]) -> dict[str, Any]:
        counts = {day: 0 for day in _WEEKDAYS}
        for post in posts:
            published = parse_datetime(post.get("timestamp") or post.get("created_time"))
            if published is not None:
                counts[_WEEKDAYS[published.weekday()]] += 1
        busiest = max(_WEEKDAYS, key=lambda day: counts[day]) if any(counts.values()) else None
        return {"by_weekday": counts, "busiest_day": busiest}


class InstagramEngagementClient(SocialEngagementClient):
    """Instagram business discovery lookup by username."""


class FacebookEngagementClient(SocialEngagementClient):
    def profile_url(self, handle: str) -> str:
        return f"{self.endpoint.base_url.rstrip('/')}/{handle}/insights"
