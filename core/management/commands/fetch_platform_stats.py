import json

from django.core.management.base import BaseCommand, CommandError

from core.services.aggregator import UsernameSet, aggregate_platform_stats
from core.services.errors import PlatformStatsError


class Command(BaseCommand):
    help = "Fetches LeetCode, CodeChef and HackerRank stats and prints the aggregated JSON."

    def add_arguments(self, parser):
        parser.add_argument("--leetcode", default="", help="LeetCode username.")
        parser.add_argument("--codechef", default="", help="CodeChef username.")
        parser.add_argument("--hackerrank", default="", help="HackerRank username.")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail the whole command when LeetCode fails instead of reporting it per platform.",
        )
        parser.add_argument(
            "--indent",
            type=int,
            default=2,
            help="JSON indentation.",
        )

    def handle(self, *args, **options):
        usernames = UsernameSet(
            leetcode=options.get("leetcode"),
            codechef=options.get("codechef"),
            hackerrank=options.get("hackerrank"),
        )
        try:
            stats = aggregate_platform_stats(
                usernames,
                partial=False if options.get("strict") else None,
            )
        except PlatformStatsError as exc:
            raise CommandError(f"{exc.error}: {exc.message}") from exc

        self.stdout.write(json.dumps(stats.to_dict(), indent=options.get("indent")))

        failed = [
            platform
            for platform, outcome in stats.platform_status.items()
            if outcome.status == "error"
        ]
        if failed:
            self.stdout.write(
                self.style.WARNING(f"Failed platforms: {', '.join(failed)}")
            )
