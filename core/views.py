import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods

from .models import PlatformProfile
from .services.aggregator import PLATFORMS, USERNAME_PATTERN, UsernameSet, aggregate_platform_stats
from .services.errors import PlatformStatsError
from .services.stats_cache import get_stats_cache, user_cache_key

logger = logging.getLogger(__name__)


def _is_truthy_param(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _sanitize_handle(handle: str | None) -> str:
    if handle is None:
        return ""
    return handle.strip()


def _error_response(exc: Exception) -> JsonResponse:
    if isinstance(exc, PlatformStatsError):
        return JsonResponse(exc.to_payload(), status=exc.status_code)
    logger.exception("Unexpected error in platform stats")
    return JsonResponse(
        {"error": "Failed to fetch platform stats", "message": str(exc)},
        status=500,
    )


def api_login_required(view_func):
    """login_required for JSON endpoints: answers 401 instead of redirecting."""

    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse(
                {"error": "Unauthorized", "message": "Authentication required."},
                status=401,
            )
        return view_func(request, *args, **kwargs)

    return _wrapped


def _get_or_create_profile(request) -> PlatformProfile:
    profile = getattr(request, "platform_profile", None)
    if profile is None:
        profile, _ = PlatformProfile.objects.get_or_create(user=request.user)
    return profile


def _fetch_cached(key: str, usernames: UsernameSet) -> dict:
    return get_stats_cache().get_or_fetch(
        key,
        lambda: aggregate_platform_stats(usernames).to_dict(),
    )


@require_GET
def platform_stats(request):
    usernames = UsernameSet.from_mapping(request.GET)
    logger.info(
        "Platform stats requested: leetcode=%s codechef=%s hackerrank=%s",
        usernames.leetcode or "-",
        usernames.codechef or "-",
        usernames.hackerrank or "-",
    )
    try:
        usernames.validate()
        data = _fetch_cached(usernames.cache_key(), usernames)
    except Exception as exc:
        return _error_response(exc)
    return JsonResponse(data)


@api_login_required
@require_http_methods(["GET", "POST"])
def user_profiles(request):
    profile = _get_or_create_profile(request)

    if request.method == "POST":
        if request.content_type == "application/json":
            try:
                payload = json.loads(request.body or b"{}")
            except ValueError:
                return JsonResponse(
                    {"error": "Invalid request", "message": "Body must be valid JSON."},
                    status=400,
                )
            if not isinstance(payload, dict):
                payload = {}
        else:
            payload = request.POST

        errors = {}
        cleaned = {}
        for platform in PLATFORMS:
            if platform not in payload:
                continue
            raw = payload.get(platform)
            if raw is not None and not isinstance(raw, str):
                errors[platform] = "Username must be a string."
                continue
            value = _sanitize_handle(raw)
            max_length = PlatformProfile._meta.get_field(platform).max_length
            if len(value) > max_length:
                errors[platform] = f"Usernames may have at most {max_length} characters."
            elif value and not USERNAME_PATTERN.match(value):
                errors[platform] = "Usernames may only contain letters, digits, '_' and '-'."
            cleaned[platform] = value

        if errors:
            return JsonResponse(
                {"error": "Invalid request", "message": "Invalid usernames.", "fields": errors},
                status=400,
            )

        if cleaned:
            for platform, value in cleaned.items():
                setattr(profile, platform, value)
            profile.save()
            get_stats_cache().invalidate(user_cache_key(request.user.id))

    return JsonResponse({platform: getattr(profile, platform) or "" for platform in PLATFORMS})


@api_login_required
@require_GET
def my_platform_stats(request):
    profile = _get_or_create_profile(request)
    usernames = profile.username_set()
    key = user_cache_key(request.user.id)
    if _is_truthy_param(request.GET.get("refresh")):
        get_stats_cache().invalidate(key)
    try:
        usernames.validate()
        data = _fetch_cached(key, usernames)
    except Exception as exc:
        return _error_response(exc)
    return JsonResponse(data)
