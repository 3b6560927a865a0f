from unittest.mock import Mock, patch

import requests
from django.test import SimpleTestCase, override_settings

from core.services.errors import (
    FetchError,
    MalformedResponseError,
    NotFoundError,
    TooManyRequests,
    UpstreamError,
)
from core.services.platform_clients import (
    CodeChefClient,
    HackerRankClient,
    LeetCodeClient,
    fetch_codechef,
    fetch_hackerrank,
    fetch_leetcode,
    fetch_with_fallback,
)


def _response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


def _leetcode_payload(easy=3, medium=5, hard=2, profile=None, extra=None):
    stats = [
        {"difficulty": "All", "count": 999},
        {"difficulty": "Easy", "count": easy},
        {"difficulty": "Medium", "count": medium},
        {"difficulty": "Hard", "count": hard},
    ]
    payload = {
        "data": {
            "matchedUser": {
                "submitStatsGlobal": {"acSubmissionNum": stats},
                "profile": profile if profile is not None else {"ranking": 1234, "reputation": 7},
            }
        }
    }
    if extra:
        payload.update(extra)
    return payload


@override_settings(PLATFORM_RETRY_DELAY_SECONDS=0)
class LeetCodeClientTests(SimpleTestCase):
    def test_total_is_recomputed_from_difficulty_counts(self):
        with patch("core.services.platform_clients.requests.post", return_value=_response(payload=_leetcode_payload())):
            stats = fetch_leetcode("validuser")

        self.assertEqual((stats.easy, stats.medium, stats.hard), (3, 5, 2))
        self.assertEqual(stats.total, 10)
        self.assertEqual(stats.ranking, 1234)
        self.assertEqual(stats.reputation, 7)

    def test_sends_fixed_graphql_document_with_browser_headers(self):
        with patch(
            "core.services.platform_clients.requests.post",
            return_value=_response(payload=_leetcode_payload()),
        ) as post_mock:
            LeetCodeClient.get_profile_stats("validuser")

        kwargs = post_mock.call_args.kwargs
        self.assertEqual(kwargs["json"]["operationName"], "userProfile")
        self.assertEqual(kwargs["json"]["variables"], {"username": "validuser"})
        self.assertIn("acSubmissionNum", kwargs["json"]["query"])
        self.assertEqual(kwargs["headers"]["Origin"], "https://leetcode.com")
        self.assertIn("Mozilla/5.0", kwargs["headers"]["User-Agent"])
        self.assertEqual(kwargs["timeout"], 30)

    def test_graphql_errors_win_over_partial_data(self):
        payload = _leetcode_payload(extra={"errors": [{"message": "x"}]})
        with patch("core.services.platform_clients.requests.post", return_value=_response(payload=payload)):
            with self.assertRaises(UpstreamError) as ctx:
                fetch_leetcode("validuser")

        self.assertEqual(ctx.exception.message, "x")
        self.assertEqual(ctx.exception.status_code, 500)

    def test_missing_matched_user_is_not_found(self):
        payload = {"data": {"matchedUser": None}}
        with patch("core.services.platform_clients.requests.post", return_value=_response(payload=payload)):
            with self.assertRaises(NotFoundError):
                fetch_leetcode("ghost")

    def test_missing_submission_counts_is_malformed(self):
        payload = {"data": {"matchedUser": {"submitStatsGlobal": {"acSubmissionNum": None}}}}
        with patch("core.services.platform_clients.requests.post", return_value=_response(payload=payload)):
            with self.assertRaises(MalformedResponseError):
                fetch_leetcode("validuser")

    def test_missing_difficulties_and_profile_use_defaults(self):
        payload = {
            "data": {
                "matchedUser": {
                    "submitStatsGlobal": {"acSubmissionNum": [{"difficulty": "Medium", "count": 4}]},
                    "profile": None,
                }
            }
        }
        stats = LeetCodeClient.parse_profile(payload)

        self.assertEqual((stats.easy, stats.medium, stats.hard, stats.total), (0, 4, 0, 4))
        self.assertEqual(stats.ranking, 100000)
        self.assertEqual(stats.reputation, 0)

    def test_rate_limit_is_reported_distinctly(self):
        with patch("core.services.platform_clients.requests.post", return_value=_response(status_code=429)):
            with self.assertRaises(TooManyRequests) as ctx:
                fetch_leetcode("validuser")

        self.assertEqual(ctx.exception.status_code, 429)

    def test_graphql_error_body_on_http_error(self):
        response = _response(status_code=400, payload={"errors": [{"message": "bad query"}]})
        with patch("core.services.platform_clients.requests.post", return_value=response):
            with self.assertRaises(UpstreamError) as ctx:
                fetch_leetcode("validuser")

        self.assertIn("bad query", ctx.exception.message)

    def test_timeouts_are_retried_then_wrapped_as_fetch_error(self):
        with patch(
            "core.services.platform_clients.requests.post",
            side_effect=requests.Timeout("read timeout"),
        ) as post_mock:
            with self.assertRaises(FetchError) as ctx:
                fetch_leetcode("validuser")

        self.assertEqual(post_mock.call_count, 4)
        self.assertIn("Failed to fetch LeetCode stats", ctx.exception.message)

    def test_timeout_then_success(self):
        with patch(
            "core.services.platform_clients.requests.post",
            side_effect=[requests.Timeout("timeout"), _response(payload=_leetcode_payload())],
        ) as post_mock:
            stats = fetch_leetcode("validuser")

        self.assertEqual(post_mock.call_count, 2)
        self.assertEqual(stats.total, 10)

    def test_graphql_timeout_message_is_not_retried(self):
        response = _response(status_code=400, payload={"errors": [{"message": "Query timeout exceeded"}]})
        with patch("core.services.platform_clients.requests.post", return_value=response) as post_mock:
            with self.assertRaises(UpstreamError) as ctx:
                fetch_leetcode("validuser")

        self.assertEqual(post_mock.call_count, 1)
        self.assertIn("Query timeout exceeded", ctx.exception.message)

    def test_service_unavailable_is_retried_then_succeeds(self):
        responses = [_response(status_code=503)] * 3 + [_response(payload=_leetcode_payload())]
        with patch("core.services.platform_clients.requests.post", side_effect=responses) as post_mock:
            stats = fetch_leetcode("validuser")

        self.assertEqual(post_mock.call_count, 4)
        self.assertEqual(stats.total, 10)

    def test_persistent_bad_gateway_is_wrapped_as_fetch_error(self):
        with patch(
            "core.services.platform_clients.requests.post",
            return_value=_response(status_code=502),
        ) as post_mock:
            with self.assertRaises(FetchError) as ctx:
                fetch_leetcode("validuser")

        self.assertEqual(post_mock.call_count, 4)
        self.assertIn("HTTP 502", ctx.exception.message)


@override_settings(PLATFORM_RETRY_DELAY_SECONDS=0)
class CodeChefClientTests(SimpleTestCase):
    def test_extracts_rating_from_profile_html(self):
        html = "<div class='rating-number'>Rating : 1850</div>"
        with patch("core.services.platform_clients.requests.get", return_value=_response(text=html)) as get_mock:
            result = fetch_codechef("chef_1")

        self.assertEqual(result, {"rating": 1850})
        self.assertTrue(get_mock.call_args.args[0].endswith("/users/chef_1"))
        self.assertEqual(get_mock.call_args.kwargs["timeout"], 10)

    def test_no_rating_in_html_gives_zero(self):
        with patch("core.services.platform_clients.requests.get", return_value=_response(text="<html></html>")):
            result = fetch_codechef("chef_1")

        self.assertEqual(result, {"rating": 0})

    def test_transport_failure_degrades_to_zero(self):
        with patch(
            "core.services.platform_clients.requests.get",
            side_effect=requests.ConnectionError("Connection aborted."),
        ):
            result = fetch_codechef("chef_1")

        self.assertEqual(result, {"rating": 0})

    def test_strict_variant_raises_on_http_error(self):
        with patch("core.services.platform_clients.requests.get", return_value=_response(status_code=500)):
            with self.assertRaises(FetchError):
                CodeChefClient.get_rating("chef_1")

    def test_strict_variant_retries_unavailable_page(self):
        with patch(
            "core.services.platform_clients.requests.get",
            return_value=_response(status_code=503),
        ) as get_mock:
            with self.assertRaises(FetchError):
                CodeChefClient.get_rating("chef_1")

        self.assertEqual(get_mock.call_count, 4)


@override_settings(PLATFORM_RETRY_DELAY_SECONDS=0)
class HackerRankClientTests(SimpleTestCase):
    def test_reads_total_points_of_first_model(self):
        payload = {"models": [{"total_points": 321.0}, {"total_points": 5}]}
        with patch("core.services.platform_clients.requests.get", return_value=_response(payload=payload)) as get_mock:
            result = fetch_hackerrank("hacker")

        self.assertEqual(result, {"points": 321})
        self.assertTrue(get_mock.call_args.args[0].endswith("/hacker/scores"))

    def test_missing_path_defaults_to_zero(self):
        self.assertEqual(HackerRankClient.extract_points({}), 0)
        self.assertEqual(HackerRankClient.extract_points({"models": []}), 0)
        self.assertEqual(HackerRankClient.extract_points({"models": [{}]}), 0)
        self.assertEqual(HackerRankClient.extract_points(None), 0)

    def test_failures_degrade_to_zero(self):
        with patch("core.services.platform_clients.requests.get", return_value=_response(status_code=404)):
            result = fetch_hackerrank("ghost")

        self.assertEqual(result, {"points": 0})

    def test_strict_variant_reports_not_found(self):
        with patch("core.services.platform_clients.requests.get", return_value=_response(status_code=404)):
            with self.assertRaises(NotFoundError):
                HackerRankClient.get_points("ghost")

    def test_non_numeric_points_are_malformed(self):
        with self.assertRaises(MalformedResponseError):
            HackerRankClient.extract_points({"models": [{"total_points": "abc"}]})

    def test_non_numeric_points_degrade_to_zero(self):
        payload = {"models": [{"total_points": "abc"}]}
        with patch("core.services.platform_clients.requests.get", return_value=_response(payload=payload)):
            result = fetch_hackerrank("hacker")

        self.assertEqual(result, {"points": 0})


class FetchWithFallbackTests(SimpleTestCase):
    def test_success_returns_value_and_no_error(self):
        fetch = Mock(return_value=1850)

        self.assertEqual(fetch_with_fallback(fetch, "chef_1", "codechef"), (1850, None))
        fetch.assert_called_once_with("chef_1")

    def test_failure_returns_zero_and_the_error(self):
        error = NotFoundError("User not found on HackerRank")
        fetch = Mock(side_effect=error)

        value, returned = fetch_with_fallback(fetch, "ghost", "hackerrank")

        self.assertEqual(value, 0)
        self.assertIs(returned, error)
