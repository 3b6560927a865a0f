from django.contrib import admin, messages

from .models import PlatformProfile
from .tasks import refresh_profile_stats
from .services.errors import PlatformStatsError

admin.site.site_header = "CodePulse Administration"
admin.site.site_title = "CodePulse Admin"
admin.site.index_title = "Dashboard administration"


@admin.register(PlatformProfile)
class PlatformProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'leetcode', 'codechef', 'hackerrank', 'stats_refreshed_at')
    search_fields = ('user__username', 'leetcode', 'codechef', 'hackerrank')
    readonly_fields = ('stats_refreshed_at', 'created_at', 'updated_at')
    ordering = ('user__username',)
    actions = ['refresh_stats']

    def refresh_stats(self, request, queryset):
        refreshed = 0
        for profile in queryset.select_related('user'):
            if not profile.has_linked_accounts():
                continue
            try:
                refresh_profile_stats(profile)
                refreshed += 1
            except PlatformStatsError as exc:
                self.message_user(
                    request,
                    f"{profile.user.username}: {exc.message}",
                    level=messages.ERROR,
                )
        self.message_user(request, f"Stats refreshed for {refreshed} profile(s).", level=messages.SUCCESS)

    refresh_stats.short_description = "Refresh platform stats now"
