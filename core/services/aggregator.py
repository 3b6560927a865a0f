import logging
import re
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable

from django.conf import settings
from django.utils import timezone

from .errors import PlatformStatsError, ValidationError
from .platform_clients import (
    CodeChefClient,
    HackerRankClient,
    LeetCodeClient,
    LeetCodeStats,
    fetch_with_fallback,
)
from .ranking_history import DEFAULT_POINTS, stable_rng, synthesize_ranking_history

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
PLATFORMS = ("leetcode", "codechef", "hackerrank")
LENIENT_PLATFORMS = ("codechef", "hackerrank")

STATUS_OK = "ok"
STATUS_SKIPPED = "skipped"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class UsernameSet:
    leetcode: str = ""
    codechef: str = ""
    hackerrank: str = ""

    def __post_init__(self):
        for platform in PLATFORMS:
            value = getattr(self, platform)
            object.__setattr__(self, platform, (value or "").strip())

    @classmethod
    def from_mapping(cls, data) -> "UsernameSet":
        return cls(**{platform: data.get(platform) or "" for platform in PLATFORMS})

    def is_empty(self) -> bool:
        return not any(getattr(self, platform) for platform in PLATFORMS)

    def validate(self) -> None:
        if self.is_empty():
            raise ValidationError("No usernames provided")
        for platform in PLATFORMS:
            value = getattr(self, platform)
            if value and not USERNAME_PATTERN.match(value):
                raise ValidationError(f"Invalid {platform} username: {value!r}", platform=platform)

    def cache_key(self) -> str:
        return "platform_stats:v1:lc={}|cc={}|hr={}".format(
            self.leetcode.lower(),
            self.codechef.lower(),
            self.hackerrank.lower(),
        )


@dataclass
class PlatformOutcome:
    status: str
    message: str = ""

    def to_dict(self) -> dict[str, str]:
        data = {"status": self.status}
        if self.message:
            data["message"] = self.message
        return data


@dataclass
class AggregatedStats:
    leetcode: LeetCodeStats | None = None
    codechef_rating: int = 0
    codechef_ranking_history: list[int] = field(default_factory=list)
    hackerrank_points: int = 0
    hackerrank_ranking_history: list[int] = field(default_factory=list)
    platform_status: dict[str, PlatformOutcome] = field(default_factory=dict)
    fetched_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "leetcode": self.leetcode.to_dict() if self.leetcode else None,
            "codechefRating": self.codechef_rating,
            "codechefRankingHistory": list(self.codechef_ranking_history),
            "hackerrankPoints": self.hackerrank_points,
            "hackerrankRankingHistory": list(self.hackerrank_ranking_history),
            "platformStatus": {
                platform: outcome.to_dict() for platform, outcome in self.platform_status.items()
            },
            "fetchedAt": self.fetched_at,
        }


def _platform_jobs(usernames: UsernameSet) -> dict[str, Callable[[], Any]]:
    jobs = {}
    if usernames.leetcode:
        jobs["leetcode"] = lambda: LeetCodeClient.get_profile_stats(usernames.leetcode)
    if usernames.codechef:
        jobs["codechef"] = lambda: fetch_with_fallback(
            CodeChefClient.get_rating, usernames.codechef, CodeChefClient.PLATFORM
        )
    if usernames.hackerrank:
        jobs["hackerrank"] = lambda: fetch_with_fallback(
            HackerRankClient.get_points, usernames.hackerrank, HackerRankClient.PLATFORM
        )
    return jobs


def _history_rng(usernames: UsernameSet, platform: str):
    if not getattr(settings, "PLATFORM_STATS_STABLE_HISTORY", False):
        return None
    return stable_rng(usernames.cache_key(), platform)


def aggregate_platform_stats(
    usernames: UsernameSet,
    *,
    partial: bool | None = None,
    executor: ThreadPoolExecutor | None = None,
) -> AggregatedStats:
    """
    Fetches every linked platform at once and merges the answers.

    CodeChef and HackerRank failures always fall back to zero. A LeetCode
    failure is reported in `platform_status` when `partial` is on; with it
    off the LeetCode error is raised once the other fetches have finished.
    """
    usernames.validate()
    if partial is None:
        partial = bool(getattr(settings, "PLATFORM_STATS_PARTIAL_RESULTS", True))

    jobs = _platform_jobs(usernames)
    logger.info("Aggregating platform stats for %s", ", ".join(sorted(jobs)))

    own_executor = executor is None
    if own_executor:
        executor = ThreadPoolExecutor(max_workers=len(PLATFORMS), thread_name_prefix="platform-stats")
    try:
        futures: dict[str, Future] = {platform: executor.submit(job) for platform, job in jobs.items()}
        results: dict[str, Any] = {}
        errors: dict[str, Exception] = {}
        for platform, future in futures.items():
            try:
                results[platform] = future.result()
            except Exception as exc:
                errors[platform] = exc

        # CodeChef and HackerRank jobs answer (value, error) and never raise.
        for platform in LENIENT_PLATFORMS:
            if platform in results:
                results[platform], error = results[platform]
                if error is not None:
                    errors[platform] = error
    finally:
        if own_executor:
            executor.shutdown(wait=True)

    platform_status = {}
    for platform in PLATFORMS:
        if platform not in jobs:
            platform_status[platform] = PlatformOutcome(STATUS_SKIPPED)
        elif platform in errors:
            exc = errors[platform]
            message = exc.message if isinstance(exc, PlatformStatsError) else str(exc)
            logger.warning("%s fetch failed: %s", platform, message)
            platform_status[platform] = PlatformOutcome(STATUS_ERROR, message)
        else:
            platform_status[platform] = PlatformOutcome(STATUS_OK)

    leetcode_error = errors.get("leetcode")
    if leetcode_error is not None and not partial:
        raise leetcode_error

    points = int(getattr(settings, "RANKING_HISTORY_POINTS", DEFAULT_POINTS))
    leetcode_stats = results.get("leetcode")
    if leetcode_stats is not None:
        leetcode_stats.ranking_history = synthesize_ranking_history(
            leetcode_stats.ranking,
            points,
            rng=_history_rng(usernames, "leetcode"),
        )

    return AggregatedStats(
        leetcode=leetcode_stats,
        codechef_rating=int(results.get("codechef") or 0),
        codechef_ranking_history=synthesize_ranking_history(
            int(getattr(settings, "CODECHEF_HISTORY_BASE", 50000)),
            points,
            rng=_history_rng(usernames, "codechef"),
        ),
        hackerrank_points=int(results.get("hackerrank") or 0),
        hackerrank_ranking_history=synthesize_ranking_history(
            int(getattr(settings, "HACKERRANK_HISTORY_BASE", 30000)),
            points,
            rng=_history_rng(usernames, "hackerrank"),
        ),
        platform_status=platform_status,
        fetched_at=timezone.now().isoformat(),
    )
