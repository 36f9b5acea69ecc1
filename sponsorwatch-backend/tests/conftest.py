from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine

import sponsorwatch.models  # noqa: F401
from sponsorwatch.core.channels import THEO
from sponsorwatch.core.errors import CrawlError, NotFoundError
from sponsorwatch.core.result import Err, Ok
from sponsorwatch.db.base import Base
from sponsorwatch.db.session import make_session_factory
from sponsorwatch.schemas.enrichment import CommentClassification, SponsorExtraction
from sponsorwatch.schemas.social import PostMetrics
from sponsorwatch.schemas.youtube import CommentPage, CommentSnapshot, PlaylistPage, VideoSnapshot
from sponsorwatch.services.checkpoints import CheckpointStore
from sponsorwatch.workers.deps import CrawlDeps


# =============================================================================
# Snapshot builders
# =============================================================================

def make_video(video_id="vid1", **overrides) -> VideoSnapshot:
    data = dict(
        video_id=video_id,
        title=f"Video {video_id}",
        description="Thanks to Acme for sponsoring! https://soydev.link/acme",
        thumbnail_url=f"https://i.ytimg.com/vi/{video_id}/maxresdefault.jpg",
        published_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        view_count=1000,
        like_count=100,
        comment_count=10,
    )
    data.update(overrides)
    return VideoSnapshot(**data)


def make_comment(comment_id, video_id="vid1", text="great video", **overrides) -> CommentSnapshot:
    data = dict(
        comment_id=comment_id,
        video_id=video_id,
        text=text,
        author="viewer",
        published_at=datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc),
        like_count=1,
        reply_count=0,
    )
    data.update(overrides)
    return CommentSnapshot(**data)


def _as_result(value):
    if isinstance(value, CrawlError):
        return Err(value)
    return Ok(value)


# =============================================================================
# Fake collaborators
# =============================================================================

class FakeYouTube:
    def __init__(self):
        self.videos = {}
        self.comment_pages = {}
        self.playlist_id = "UUplaylist"
        self.pages = {}
        self.calls = []

    def get_video_by_id(self, video_id):
        self.calls.append(("video", video_id))
        if video_id not in self.videos:
            return Err(NotFoundError(f"Video not found: {video_id}"))
        return _as_result(self.videos[video_id])

    def list_top_level_comments(self, video_id, max_comments=100):
        self.calls.append(("comments", video_id))
        page = self.comment_pages.get(video_id, CommentPage(comments=[], max_comments=max_comments))
        return _as_result(page)

    def get_uploads_playlist_id(self, channel_id):
        self.calls.append(("channel", channel_id))
        return _as_result(self.playlist_id)

    def list_playlist_video_ids(self, playlist_id, page_token=None):
        self.calls.append(("playlist", page_token))
        return _as_result(self.pages.get(page_token, PlaylistPage()))


class FakeFeed:
    def __init__(self, video_ids=None):
        self.result = Ok(list(video_ids or []))
        self.calls = []

    def fetch_feed_video_ids(self, channel_id):
        self.calls.append(channel_id)
        return self.result


class FakeSocial:
    def __init__(self, configured=True, metrics=None):
        self.is_configured = configured
        self.result = Ok(metrics or PostMetrics(view_count=500, like_count=40, repost_count=3, reply_count=7))
        self.calls = []

    def fetch_post_metrics(self, post_id):
        self.calls.append(post_id)
        return self.result


class FakeIntelligence:
    def __init__(self):
        self.sponsor_result = Ok(SponsorExtraction(
            has_sponsor=True, sponsor_name="acme", sponsor_key="https://soydev.link/acme",
        ))
        self.failing_texts = set()
        self.classified = []
        self.sponsor_calls = 0

    def extract_sponsor(self, title, description, sponsor_prompt, no_sponsor_key):
        self.sponsor_calls += 1
        return self.sponsor_result

    def classify_comment(self, video_title, video_description, comment_author, comment_text):
        self.classified.append(comment_text)
        if comment_text in self.failing_texts:
            from sponsorwatch.core.errors import AiRequestError
            return Err(AiRequestError("model unavailable"))
        return Ok(CommentClassification(
            is_editing_mistake="typo" in comment_text,
            is_sponsor_mention="acme" in comment_text,
            is_question=comment_text.endswith("?"),
            is_positive_comment="great" in comment_text,
        ))


class FakeDispatcher:
    def __init__(self):
        self.deliveries = []
        self.result = Ok(True)

    def deliver(self, notification_type, video, channel_name):
        self.deliveries.append((notification_type, video.video_id, channel_name))
        return self.result


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            import json
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeHttpSession:
    """requests.Session stand-in. Responses are consumed in order."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def request(self, method, url, timeout=None, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected request {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'crawl.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def youtube():
    return FakeYouTube()


@pytest.fixture
def intelligence():
    return FakeIntelligence()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def social():
    return FakeSocial()


@pytest.fixture
def feed():
    return FakeFeed()


@pytest.fixture
def deps(session_factory, youtube, intelligence, dispatcher, social, feed):
    return CrawlDeps(
        profile=THEO,
        session_factory=session_factory,
        youtube=youtube,
        feed=feed,
        social=social,
        intelligence=intelligence,
        checkpoints=CheckpointStore(session_factory),
        dispatcher=dispatcher,
        max_comments_per_video=100,
        max_comment_classifications=100,
        concurrency=1,
    )
