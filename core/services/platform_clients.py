import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable

import requests
from django.conf import settings

from .errors import (
    FetchError,
    MalformedResponseError,
    NotFoundError,
    PlatformStatsError,
    TooManyRequests,
    TransientNetworkError,
    UpstreamError,
)
from .http_retry import execute_with_retry

logger = logging.getLogger(__name__)

UNRANKED_PLACEHOLDER = 100000
DIFFICULTIES = ("Easy", "Medium", "Hard")


def _retry_options() -> dict[str, Any]:
    return {
        "max_retries": int(getattr(settings, "PLATFORM_MAX_RETRIES", 3)),
        "delay": float(getattr(settings, "PLATFORM_RETRY_DELAY_SECONDS", 2.0)),
    }


def _default_timeout() -> int:
    return int(getattr(settings, "PLATFORM_DEFAULT_TIMEOUT_SECONDS", 10))


def _raise_for_unavailable(response, platform: str, label: str) -> None:
    if response.status_code in (502, 503, 504):
        raise TransientNetworkError(
            f"{label} unavailable (HTTP {response.status_code})",
            platform=platform,
        )


@dataclass
class LeetCodeStats:
    total: int
    easy: int
    medium: int
    hard: int
    ranking: int
    reputation: int
    ranking_history: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "easy": self.easy,
            "medium": self.medium,
            "hard": self.hard,
            "ranking": self.ranking,
            "reputation": self.reputation,
            "rankingHistory": list(self.ranking_history),
        }


class LeetCodeClient:
    PLATFORM = "leetcode"
    QUERY = """
  query userProfile($username: String!) {
    matchedUser(username: $username) {
      submitStatsGlobal {
        acSubmissionNum {
          difficulty
          count
        }
      }
      profile {
        ranking
        reputation
      }
    }
  }
"""
    # LeetCode rejects requests that do not look like they come from the site itself.
    HEADERS = {
        "Content-Type": "application/json",
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
        ),
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
        "Origin": "https://leetcode.com",
        "Referer": "https://leetcode.com/",
        "sec-ch-ua": '"Not A(Brand";v="99", "Google Chrome";v="121", "Chromium";v="121"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "empty",
        "sec-fetch-mode": "cors",
        "sec-fetch-site": "same-origin",
        "x-requested-with": "XMLHttpRequest",
    }

    @classmethod
    def _post_query(cls, username: str) -> dict[str, Any]:
        url = getattr(settings, "LEETCODE_GRAPHQL_URL", "https://leetcode.com/graphql")
        timeout = int(getattr(settings, "LEETCODE_TIMEOUT_SECONDS", 30))
        response = requests.post(
            url,
            json={
                "query": cls.QUERY,
                "variables": {"username": username},
                "operationName": "userProfile",
            },
            headers=cls.HEADERS,
            timeout=timeout,
        )

        if response.status_code == 429:
            raise TooManyRequests(
                "Too many requests to LeetCode API. Please try again later.",
                platform=cls.PLATFORM,
            )
        _raise_for_unavailable(response, cls.PLATFORM, "LeetCode")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            errors = payload.get("errors") if isinstance(payload, dict) else None
            if errors:
                message = (errors[0] or {}).get("message") or "Unknown GraphQL error"
                raise UpstreamError(f"LeetCode API error: {message}", platform=cls.PLATFORM)
            response.raise_for_status()

        if not isinstance(payload, dict):
            raise MalformedResponseError("Invalid response format from LeetCode", platform=cls.PLATFORM)
        return payload

    @classmethod
    def parse_profile(cls, payload: dict[str, Any]) -> LeetCodeStats:
        errors = payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) and errors else {}
            message = (first or {}).get("message") or "GraphQL error occurred"
            raise UpstreamError(message, platform=cls.PLATFORM)

        user_data = (payload.get("data") or {}).get("matchedUser")
        if not user_data:
            raise NotFoundError("User not found on LeetCode", platform=cls.PLATFORM)

        stats = (user_data.get("submitStatsGlobal") or {}).get("acSubmissionNum")
        if not isinstance(stats, list):
            raise MalformedResponseError("Invalid response format from LeetCode", platform=cls.PLATFORM)

        counts = {}
        for difficulty in DIFFICULTIES:
            counts[difficulty] = next(
                (
                    int(entry.get("count") or 0)
                    for entry in stats
                    if isinstance(entry, dict) and entry.get("difficulty") == difficulty
                ),
                0,
            )

        profile = user_data.get("profile") or {}
        return LeetCodeStats(
            # Upstream "All" bucket is not used.
            total=counts["Easy"] + counts["Medium"] + counts["Hard"],
            easy=counts["Easy"],
            medium=counts["Medium"],
            hard=counts["Hard"],
            ranking=int(profile.get("ranking") or UNRANKED_PLACEHOLDER),
            reputation=int(profile.get("reputation") or 0),
        )

    @classmethod
    def get_profile_stats(cls, username: str) -> LeetCodeStats:
        logger.info("Fetching LeetCode stats for %s", username)
        try:
            payload = execute_with_retry(
                lambda: cls._post_query(username),
                label=f"LeetCode {username}",
                **_retry_options(),
            )
            return cls.parse_profile(payload)
        except PlatformStatsError as exc:
            if not isinstance(exc, TransientNetworkError):
                logger.warning("LeetCode error for %s: %s", username, exc.message)
                raise
            logger.error("Failed to fetch LeetCode stats for %s: %s", username, exc)
            raise FetchError(
                f"Failed to fetch LeetCode stats: {exc}",
                platform=cls.PLATFORM,
            ) from exc
        except Exception as exc:
            logger.error("Failed to fetch LeetCode stats for %s: %s", username, exc)
            raise FetchError(
                f"Failed to fetch LeetCode stats: {exc}",
                platform=cls.PLATFORM,
            ) from exc


class CodeChefClient:
    PLATFORM = "codechef"
    RATING_PATTERN = re.compile(r"Rating\s*:\s*(\d+)")
    HEADERS = {
        "User-Agent": "Mozilla/5.0",
        "Accept": "text/html",
    }

    @classmethod
    def extract_rating(cls, html: str) -> int:
        match = cls.RATING_PATTERN.search(html or "")
        if not match:
            return 0
        return int(match.group(1))

    @classmethod
    def _get_profile_page(cls, username: str) -> str:
        base_url = getattr(settings, "CODECHEF_BASE_URL", "https://www.codechef.com/users").rstrip("/")
        response = requests.get(
            f"{base_url}/{username}",
            headers=cls.HEADERS,
            timeout=_default_timeout(),
        )
        if response.status_code == 429:
            raise TooManyRequests("Too many requests to CodeChef.", platform=cls.PLATFORM)
        _raise_for_unavailable(response, cls.PLATFORM, "CodeChef")
        if response.status_code == 404:
            raise NotFoundError("User not found on CodeChef", platform=cls.PLATFORM)
        response.raise_for_status()
        return response.text

    @classmethod
    def get_rating(cls, username: str) -> int:
        """
        Strict variant: scrapes the public profile page and raises typed errors.
        """
        try:
            html = execute_with_retry(
                lambda: cls._get_profile_page(username),
                label=f"CodeChef {username}",
                **_retry_options(),
            )
        except PlatformStatsError as exc:
            if not isinstance(exc, TransientNetworkError):
                raise
            raise FetchError(f"Failed to fetch CodeChef rating: {exc}", platform=cls.PLATFORM) from exc
        except Exception as exc:
            raise FetchError(f"Failed to fetch CodeChef rating: {exc}", platform=cls.PLATFORM) from exc
        return cls.extract_rating(html)


class HackerRankClient:
    PLATFORM = "hackerrank"
    HEADERS = {
        "User-Agent": "Mozilla/5.0",
        "Accept": "application/json",
    }

    @classmethod
    def extract_points(cls, payload: Any) -> int:
        if not isinstance(payload, dict):
            return 0
        models = payload.get("models")
        if not isinstance(models, list) or not models or not isinstance(models[0], dict):
            return 0
        try:
            return int(models[0].get("total_points") or 0)
        except (TypeError, ValueError) as exc:
            raise MalformedResponseError(
                "Invalid total_points in HackerRank response", platform=cls.PLATFORM
            ) from exc

    @classmethod
    def _get_scores(cls, username: str) -> Any:
        base_url = getattr(
            settings, "HACKERRANK_BASE_URL", "https://www.hackerrank.com/rest/hackers"
        ).rstrip("/")
        response = requests.get(
            f"{base_url}/{username}/scores",
            headers=cls.HEADERS,
            timeout=_default_timeout(),
        )
        if response.status_code == 429:
            raise TooManyRequests("Too many requests to HackerRank.", platform=cls.PLATFORM)
        _raise_for_unavailable(response, cls.PLATFORM, "HackerRank")
        if response.status_code == 404:
            raise NotFoundError("User not found on HackerRank", platform=cls.PLATFORM)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                "Invalid response format from HackerRank", platform=cls.PLATFORM
            ) from exc

    @classmethod
    def get_points(cls, username: str) -> int:
        try:
            payload = execute_with_retry(
                lambda: cls._get_scores(username),
                label=f"HackerRank {username}",
                **_retry_options(),
            )
        except PlatformStatsError as exc:
            if not isinstance(exc, TransientNetworkError):
                raise
            raise FetchError(f"Failed to fetch HackerRank points: {exc}", platform=cls.PLATFORM) from exc
        except Exception as exc:
            raise FetchError(f"Failed to fetch HackerRank points: {exc}", platform=cls.PLATFORM) from exc
        return cls.extract_points(payload)


def fetch_with_fallback(fetch: Callable[[str], int], username: str, platform: str) -> tuple[int, Exception | None]:
    """
    Runs a strict client call and turns any failure into a zero value.
    The error is handed back alongside so callers can report it.
    """
    try:
        return fetch(username), None
    except Exception as exc:
        logger.error("%s error for %s: %s", platform, username, exc)
        return 0, exc


def fetch_leetcode(username: str) -> LeetCodeStats:
    return LeetCodeClient.get_profile_stats(username)


def fetch_codechef(username: str) -> dict[str, int]:
    """
    Never raises: any failure degrades to a zero rating.
    """
    rating, _ = fetch_with_fallback(CodeChefClient.get_rating, username, CodeChefClient.PLATFORM)
    return {"rating": rating}


def fetch_hackerrank(username: str) -> dict[str, int]:
    points, _ = fetch_with_fallback(HackerRankClient.get_points, username, HackerRankClient.PLATFORM)
    return {"points": points}
