from django.db import models
from django.contrib.auth.models import User

from core.services.aggregator import UsernameSet


class PlatformProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='platforms')

    # Linked accounts
    leetcode = models.CharField(max_length=100, blank=True, default='')
    codechef = models.CharField(max_length=100, blank=True, default='')
    hackerrank = models.CharField(max_length=100, blank=True, default='')

    # Last background warm-up of the stats cache
    stats_refreshed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Platform profile"
        verbose_name_plural = "Platform profiles"

    def __str__(self):
        return f"{self.user.username} platforms"

    def username_set(self) -> UsernameSet:
        return UsernameSet(
            leetcode=self.leetcode,
            codechef=self.codechef,
            hackerrank=self.hackerrank,
        )

    def has_linked_accounts(self) -> bool:
        return not self.username_set().is_empty()
