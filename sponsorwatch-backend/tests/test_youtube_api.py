from datetime import datetime, timezone

import requests
from conftest import FakeHttpSession, FakeResponse

from sponsorwatch.core.errors import ExternalError, MissingCredentialsError, NotFoundError
from sponsorwatch.services.http import JsonHttpClient
from sponsorwatch.services.youtube_api import YouTubeApiClient, pick_thumbnail


def _client(*responses, api_key="yt-key", attempts=3):
    session = FakeHttpSession(responses)
    client = YouTubeApiClient(api_key, http=JsonHttpClient(session=session, attempts=attempts, base_delay=0))
    return client, session


def _thread(comment_id, video_id="vid1", text="hi", replies=0):
    return {
        "snippet": {
            "totalReplyCount": replies,
            "topLevelComment": {
                "id": comment_id,
                "snippet": {
                    "videoId": video_id,
                    "textDisplay": text,
                    "authorDisplayName": "@viewer",
                    "publishedAt": "2024-05-02T10:00:00Z",
                    "likeCount": 3,
                },
            },
        },
    }


def test_video_snapshot_mapping():
    client, session = _client(FakeResponse(payload={"items": [{
        "id": "vid1",
        "snippet": {
            "title": "Title",
            "description": "Desc",
            "publishedAt": "2024-05-01T12:00:00Z",
            "thumbnails": {"high": {"url": "https://i/high.jpg"}, "default": {"url": "https://i/default.jpg"}},
        },
        "statistics": {"viewCount": "1200", "likeCount": "88"},
    }]}))

    video = client.get_video_by_id("vid1").value

    assert video.title == "Title"
    assert video.thumbnail_url == "https://i/high.jpg"
    assert video.published_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert video.view_count == 1200
    assert video.like_count == 88
    assert video.comment_count == 0
    assert session.requests[0]["params"]["part"] == "snippet,statistics"
    assert session.requests[0]["params"]["key"] == "yt-key"


def test_invalid_publish_date_falls_back_to_epoch():
    client, _ = _client(FakeResponse(payload={"items": [{"id": "v", "snippet": {"publishedAt": "garbage"}}]}))

    video = client.get_video_by_id("v").value

    assert video.published_at == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert video.thumbnail_url == ""


def test_empty_items_is_not_found():
    client, _ = _client(FakeResponse(payload={"items": []}))

    result = client.get_video_by_id("gone")

    assert isinstance(result.error, NotFoundError)


def test_404_is_not_found_and_not_retried():
    client, session = _client(FakeResponse(status_code=404, text="nope"))

    result = client.get_video_by_id("gone")

    assert isinstance(result.error, NotFoundError)
    assert len(session.requests) == 1


def test_transient_failures_are_retried():
    client, session = _client(
        requests.ConnectionError("reset"),
        FakeResponse(status_code=503, text="busy"),
        FakeResponse(payload={"items": [{"id": "vid1", "snippet": {"title": "ok"}}]}),
    )

    result = client.get_video_by_id("vid1")

    assert result.is_ok
    assert len(session.requests) == 3


def test_retry_budget_is_bounded():
    client, session = _client(*[FakeResponse(status_code=500, text="down")] * 3)

    result = client.get_video_by_id("vid1")

    assert isinstance(result.error, ExternalError)
    assert len(session.requests) == 3


def test_missing_api_key_makes_no_request():
    client, session = _client(api_key="  ")

    result = client.get_video_by_id("vid1")

    assert isinstance(result.error, MissingCredentialsError)
    assert session.requests == []


def test_comments_paginate_and_filter():
    client, session = _client(
        FakeResponse(payload={
            "items": [_thread("c1"), _thread("", text="no id"), _thread("c2", video_id="other")],
            "nextPageToken": "page2",
        }),
        FakeResponse(payload={"items": [_thread("c3", replies=4)]}),
    )

    page = client.list_top_level_comments("vid1", 100).value

    assert [c.comment_id for c in page.comments] == ["c1", "c3"]
    assert page.comments[1].reply_count == 4
    assert page.is_limited is False
    assert session.requests[0]["params"]["order"] == "time"
    assert "pageToken" not in session.requests[0]["params"]
    assert session.requests[1]["params"]["pageToken"] == "page2"


def test_comments_stop_at_cap():
    client, session = _client(
        FakeResponse(payload={"items": [_thread("c1"), _thread("c2"), _thread("c3")], "nextPageToken": "more"}),
    )

    page = client.list_top_level_comments("vid1", 2).value

    assert [c.comment_id for c in page.comments] == ["c1", "c2"]
    assert page.is_limited is True
    assert page.max_comments == 2
    assert len(session.requests) == 1


def test_comments_disabled_is_empty_success():
    disabled = FakeResponse(
        status_code=403,
        text='{"error": {"errors": [{"reason": "commentsDisabled"}]}}',
    )
    client, _ = _client(disabled, disabled, disabled)

    result = client.list_top_level_comments("vid1", 100)

    assert result.is_ok
    assert result.value.comments == []
    assert result.value.is_limited is False


def test_comment_fetch_failure_is_external_error():
    client, _ = _client(*[FakeResponse(status_code=500, text="down")] * 3)

    assert isinstance(client.list_top_level_comments("vid1", 100).error, ExternalError)


def test_uploads_playlist():
    client, _ = _client(
        FakeResponse(payload={"items": [{"contentDetails": {"relatedPlaylists": {"uploads": "UUxyz"}}}]}),
        FakeResponse(payload={"items": [{"contentDetails": {"relatedPlaylists": {}}}]}),
        FakeResponse(payload={"items": []}),
    )

    assert client.get_uploads_playlist_id("UCxyz").value == "UUxyz"
    assert isinstance(client.get_uploads_playlist_id("UCxyz").error, NotFoundError)
    assert isinstance(client.get_uploads_playlist_id("UCxyz").error, NotFoundError)


def test_playlist_page():
    client, session = _client(
        FakeResponse(payload={
            "items": [{"contentDetails": {"videoId": "a"}}, {"contentDetails": {}}, {"contentDetails": {"videoId": "b"}}],
            "nextPageToken": "next",
        }),
        FakeResponse(payload={"items": [{"contentDetails": {"videoId": "c"}}]}),
    )

    first = client.list_playlist_video_ids("UUxyz").value
    last = client.list_playlist_video_ids("UUxyz", "next").value

    assert first.video_ids == ["a", "b"]
    assert first.next_page_token == "next"
    assert last.video_ids == ["c"]
    assert last.next_page_token is None
    assert session.requests[0]["params"]["maxResults"] == 50


def test_thumbnail_preference():
    assert pick_thumbnail({"medium": {"url": "m"}, "maxres": {"url": "x"}}) == "x"
    assert pick_thumbnail({"default": {"url": "d"}}) == "d"
    assert pick_thumbnail(None) == ""
