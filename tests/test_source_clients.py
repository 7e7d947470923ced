"""Tests for source clients: retry, caching, child fan-out and parsing."""

import pytest
import requests
from unittest.mock import Mock, patch

from feedbackradar.core.errors import PermanentSourceError, TransientSourceError
from feedbackradar.core.models import SourceKind
from feedbackradar.services.base_client import BaseSourceClient, strip_html
from feedbackradar.services.devto_client import DevToService, devto_tag
from feedbackradar.services.hackernews_client import HackerNewsService
from feedbackradar.services.reddit_client import RedditService
from feedbackradar.services.stackoverflow_client import StackOverflowService, product_tag


def _response(status=200, data=None):
    response = Mock()
    response.status_code = status
    response.json.return_value = data if data is not None else {}
    return response


HN_STORIES = {
    "hits": [
        {"objectID": str(i), "title": f"Story {i} about Linear", "story_text": "",
         "author": f"author{i}", "created_at": "2024-05-01T10:00:00Z", "url": None}
        for i in range(1, 5)
    ]
}


class TestBaseClientHttp:
    """Test retry and caching through a concrete client."""

    def setup_method(self):
        self.session = Mock()
        self.session.headers = {}
        self.sleep = Mock()
        self.now = [1000.0]
        self.service = HackerNewsService(
            session=self.session, sleep=self.sleep, clock=lambda: self.now[0],
            max_retries=2, retry_delay=1.0, request_delay=0.2, cache_ttl=300,
        )

    def test_cache_hit_skips_network(self):
        self.session.get.return_value = _response(data=HN_STORIES)
        first = self.service.search("Linear", limit=4)
        second = self.service.search("Linear", limit=4)
        assert len(first) == len(second) == 4
        assert self.session.get.call_count == 1

    def test_cache_expires_after_ttl(self):
        self.session.get.return_value = _response(data=HN_STORIES)
        self.service.search("Linear", limit=4)
        self.now[0] += 301
        self.service.search("Linear", limit=4)
        assert self.session.get.call_count == 2

    def test_clear_cache(self):
        self.session.get.return_value = _response(data=HN_STORIES)
        self.service.search("Linear", limit=4)
        self.service.clear_cache()
        self.service.search("Linear", limit=4)
        assert self.session.get.call_count == 2

    def test_rate_limit_is_retried_with_backoff(self):
        self.session.get.side_effect = [_response(429), _response(429), _response(data=HN_STORIES)]
        threads = self.service.search("Linear", limit=4)
        assert len(threads) == 4
        assert self.session.get.call_count == 3
        assert [c.args[0] for c in self.sleep.call_args_list] == [1.0, 2.0]

    def test_server_errors_exhaust_retries(self):
        self.session.get.return_value = _response(503)
        with pytest.raises(TransientSourceError) as exc_info:
            self.service.search("Linear")
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable
        assert self.session.get.call_count == 3

    def test_client_error_is_not_retried(self):
        self.session.get.return_value = _response(404)
        with pytest.raises(PermanentSourceError) as exc_info:
            self.service.search("Linear")
        assert exc_info.value.status_code == 404
        assert not exc_info.value.retryable
        assert self.session.get.call_count == 1
        self.sleep.assert_not_called()

    def test_network_error_is_transient(self):
        self.session.get.side_effect = [requests.ConnectionError("reset"), _response(data=HN_STORIES)]
        assert len(self.service.search("Linear", limit=4)) == 4

    def test_failed_child_fetch_yields_empty_children(self):
        self.session.get.return_value = _response(data=HN_STORIES)

        def fake_children(ref, limit=20):
            if ref == "2":
                raise PermanentSourceError("gone", status_code=410)
            return [self.service._make_item(f"comment on {ref}", "c", "", "")]

        with patch.object(self.service, "fetch_children", side_effect=fake_children):
            threads = self.service.search_with_children("Linear", limit=4)

        assert [t.ref for t in threads] == ["1", "2", "3", "4"]
        assert threads[1].children == []
        assert all(len(t.children) == 1 for t in threads if t.ref != "2")
        # Four parents in batches of three: one pause between batches
        self.sleep.assert_called_once_with(0.2)


class TestHackerNewsParsing:
    """Test Hacker News response parsing."""

    def setup_method(self):
        self.session = Mock()
        self.session.headers = {}
        self.service = HackerNewsService(session=self.session, sleep=Mock())

    def test_comments_are_cleaned_and_filtered(self):
        self.session.get.return_value = _response(data={"hits": [
            {"objectID": "11", "comment_text": "<p>Linear&#x27;s triage view is <i>really</i> good</p>",
             "author": "pg", "created_at": "2024-05-02T00:00:00Z"},
            {"objectID": "12", "comment_text": "+1", "author": "x", "created_at": ""},
        ]})
        comments = self.service.fetch_children("10")
        assert len(comments) == 1
        assert comments[0].text == "Linear's triage view is really good"
        assert comments[0].url == "https://news.ycombinator.com/item?id=11"
        assert comments[0].source == SourceKind.HACKERNEWS

    def test_story_without_url_links_to_item(self):
        self.session.get.return_value = _response(data=HN_STORIES)
        threads = self.service.search("Linear", limit=1)
        assert threads[0].post.url == "https://news.ycombinator.com/item?id=1"

    def test_text_truncated(self):
        self.session.get.return_value = _response(data={"hits": [
            {"objectID": "1", "comment_text": "a" * 900, "author": "a", "created_at": ""},
        ]})
        assert len(self.service.fetch_children("1")[0].text) == 500


class TestStackOverflow:
    """Test Stack Overflow parameters and parsing."""

    def setup_method(self):
        self.session = Mock()
        self.session.headers = {}
        self.service = StackOverflowService(api_key="k", session=self.session, sleep=Mock())

    def test_tagged_search_sends_key_and_site(self):
        self.session.get.return_value = _response(data={"items": [
            {"question_id": 5, "title": "Is Linear worth it?", "body": "<p>Thinking of switching.</p>",
             "owner": {"display_name": "dev"}, "creation_date": 1714521600,
             "link": "https://stackoverflow.com/q/5"},
        ]})
        threads = self.service.search("Linear", limit=5, tagged=product_tag("Linear"))
        params = self.session.get.call_args.kwargs["params"]
        assert params["tagged"] == "linear"
        assert params["key"] == "k"
        assert params["site"] == "stackoverflow"
        assert threads[0].post.text == "Is Linear worth it? Thinking of switching."
        assert threads[0].post.timestamp.startswith("2024-05-01")

    def test_short_answers_dropped(self):
        self.session.get.return_value = _response(data={"items": [
            {"answer_id": 1, "body": "Use it.", "owner": {"display_name": "a"}, "creation_date": 1},
            {"answer_id": 2, "body": "<p>We migrated our whole team and it works well.</p>",
             "owner": {"display_name": "b"}, "creation_date": 1},
        ]})
        answers = self.service.fetch_children("5")
        assert [a.url for a in answers] == ["https://stackoverflow.com/a/2"]

    def test_plan_starts_with_tagged_search(self):
        plan = self.service._search_plan("VS Code", 10)
        assert plan[0] == ("VS Code", {"limit": 10, "tagged": "vs-code"})


class TestDevTo:
    """Test Dev.to collection end to end with a routed fake session."""

    def setup_method(self):
        self.session = Mock()
        self.session.headers = {}
        self.service = DevToService(session=self.session, sleep=Mock())

    def _route(self, url, params=None, timeout=None):
        if url.endswith("/articles"):
            return _response(data=[{"id": 7, "title": "Why we moved to Linear", "description": "short",
                                    "user": {"username": "writer"}, "published_at": "2024-04-01T00:00:00Z",
                                    "url": "https://dev.to/writer/linear"}])
        if url.endswith("/articles/7"):
            return _response(data={"id": 7, "title": "Why we moved to Linear",
                                   "body_html": "<p>Our team switched after two years of slow boards.</p>",
                                   "user": {"username": "writer"}, "published_at": "2024-04-01T00:00:00Z",
                                   "url": "https://dev.to/writer/linear"})
        if url.endswith("/comments"):
            return _response(data=[
                {"id_code": "a1", "body_html": "<p>Same here, the keyboard shortcuts won us over.</p>",
                 "user": {"username": "c1"}, "created_at": "2024-04-02T00:00:00Z",
                 "children": [
                     {"id_code": "a2", "body_html": "<p>Agreed!</p>", "user": {"username": "c2"}, "children": []},
                     {"id_code": "a3", "body_html": "<p>The pricing for larger teams is the catch though.</p>",
                      "user": {"username": "c3"}, "children": []},
                 ]},
            ])
        return _response(404)

    def test_collect_flattens_article_and_nested_comments(self):
        self.session.get.side_effect = self._route
        items = self.service.collect("Linear", parent_limit=5, children_per_parent=10)
        assert [i.author for i in items] == ["writer", "c1", "c3"]
        assert items[0].text.startswith("Why we moved to Linear Our team switched")
        assert items[2].url == "https://dev.to/comment/a3"

    def test_collect_raises_when_every_query_fails(self):
        self.session.get.return_value = _response(404)
        with pytest.raises(PermanentSourceError):
            self.service.collect("Linear")

    def test_tag(self):
        assert devto_tag("Next.js") == "nextjs"
        assert devto_tag("VS Code") == "vscode"


def test_strip_html():
    assert strip_html("<p>a &amp; b</p>\n<br/> c") == "a & b c"
    assert strip_html("") == ""


class TestReddit:
    """Test Reddit JSON parsing."""

    def setup_method(self):
        self.session = Mock()
        self.session.headers = {}
        self.service = RedditService(session=self.session, sleep=Mock())

    def test_search_builds_posts(self):
        self.session.get.return_value = _response(data={"data": {"children": [
            {"kind": "t3", "data": {"id": "abc", "title": "Linear vs Jira?", "selftext": "Which one for a small team",
                                    "author": "op", "created_utc": 1714521600,
                                    "permalink": "/r/projectmanagement/comments/abc/linear_vs_jira/"}},
        ]}})
        threads = self.service.search("Linear", limit=5)
        assert threads[0].ref == "/r/projectmanagement/comments/abc/linear_vs_jira/"
        assert threads[0].post.text == "Linear vs Jira? Which one for a small team"
        assert threads[0].post.url.startswith("https://www.reddit.com/r/projectmanagement")
        assert threads[0].post.source == SourceKind.REDDIT

    def test_comments_skip_bots_and_more_links(self):
        self.session.get.return_value = _response(data=[
            {"data": {"children": []}},
            {"data": {"children": [
                {"kind": "t1", "data": {"author": "AutoModerator", "body": "Please read the rules before posting here.",
                                        "created_utc": 1, "permalink": "/c/1"}},
                {"kind": "t1", "data": {"author": "dev", "body": "We moved last year and the speed is unreal.",
                                        "created_utc": 1, "permalink": "/c/2"}},
                {"kind": "t1", "data": {"author": "brief", "body": "this", "created_utc": 1, "permalink": "/c/3"}},
                {"kind": "more", "data": {"children": ["x"]}},
            ]}},
        ])
        comments = self.service.fetch_children("/r/pm/comments/abc/")
        assert [c.author for c in comments] == ["dev"]
        assert self.session.get.call_args.args[0] == "https://www.reddit.com/r/pm/comments/abc.json"


def test_base_client_requires_search_and_children():
    class SearchOnly(BaseSourceClient):
        def search(self, query, limit=10, **options):
            return []

    with pytest.raises(TypeError):
        BaseSourceClient()
    with pytest.raises(TypeError):
        SearchOnly()
