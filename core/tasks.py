import logging
import time

from celery import shared_task
from django.conf import settings
from django.utils import timezone
import redis

from .models import PlatformProfile
from .services.aggregator import aggregate_platform_stats
from .services.errors import PlatformStatsError
from .services.stats_cache import get_stats_cache, user_cache_key

logger = logging.getLogger(__name__)

_redis_client = None


def _get_redis_client():
    global _redis_client
    if _redis_client is None:
        url = getattr(settings, "CELERY_BROKER_URL", "redis://localhost:6379/0")
        _redis_client = redis.Redis.from_url(url)
    return _redis_client


def _acquire_lock(lock_key: str, ttl_seconds: int = 600) -> bool:
    try:
        client = _get_redis_client()
        return bool(client.set(lock_key, str(time.time()), nx=True, ex=ttl_seconds))
    except Exception:
        logger.exception("Lock failure for %s; continuing without lock.", lock_key)
        return True


def refresh_profile_stats(profile: PlatformProfile) -> dict:
    """
    Aggregates the profile's linked accounts and stores the result under the
    per-user cache key, replacing whatever was there.
    """
    usernames = profile.username_set()
    stats = aggregate_platform_stats(usernames).to_dict()
    get_stats_cache().set(user_cache_key(profile.user_id), stats)
    profile.stats_refreshed_at = timezone.now()
    profile.save(update_fields=["stats_refreshed_at"])
    return stats


@shared_task
def warm_platform_stats(profile_id):
    try:
        profile = PlatformProfile.objects.select_related("user").get(id=profile_id)
    except PlatformProfile.DoesNotExist:
        return {"status": "error", "message": "profile not found"}

    if not profile.has_linked_accounts():
        return {"status": "skipped", "message": "no linked accounts"}

    try:
        stats = refresh_profile_stats(profile)
    except PlatformStatsError as exc:
        logger.warning("Stats warm-up failed for %s: %s", profile.user.username, exc.message)
        return {"status": "error", "message": exc.message}

    failed = [
        platform
        for platform, outcome in stats["platformStatus"].items()
        if outcome["status"] == "error"
    ]
    return {"status": "ok", "failed_platforms": failed}


@shared_task
def warm_all_platform_stats():
    ttl_seconds = max(int(getattr(settings, "PLATFORM_STATS_WARM_MINUTES", 5)) * 60 - 10, 30)
    if not _acquire_lock("warm_all_platform_stats", ttl_seconds=ttl_seconds):
        return {"status": "locked", "message": "already running"}

    profile_ids = [
        profile.id
        for profile in PlatformProfile.objects.only("id", "leetcode", "codechef", "hackerrank")
        if profile.has_linked_accounts()
    ]
    for profile_id in profile_ids:
        warm_platform_stats.delay(profile_id)

    return f"Queued stats warm-up for {len(profile_ids)} profiles."
