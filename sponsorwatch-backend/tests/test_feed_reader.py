from conftest import FakeHttpSession, FakeResponse

from sponsorwatch.core.errors import ExternalError
from sponsorwatch.services.feed_reader import FeedReader, channel_feed_url, parse_feed_video_ids
from sponsorwatch.services.http import JsonHttpClient

FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns:media="http://search.yahoo.com/mrss/" xmlns="http://www.w3.org/2005/Atom">
 <title>Theo - t3.gg</title>
 <entry>
  <id>yt:video:newest</id>
  <yt:videoId>newest</yt:videoId>
  <title>Newest upload</title>
  <published>2024-05-03T16:00:00+00:00</published>
 </entry>
 <entry>
  <id>yt:video:older</id>
  <yt:videoId>older</yt:videoId>
  <title>Older upload</title>
  <published>2024-05-01T16:00:00+00:00</published>
 </entry>
 <entry>
  <id>yt:video:newest</id>
  <yt:videoId>newest</yt:videoId>
  <title>Newest upload again</title>
 </entry>
</feed>"""


def test_feed_url():
    assert channel_feed_url("UC123") == "https://www.youtube.com/feeds/videos.xml?channel_id=UC123"


def test_parse_dedupes_in_order():
    assert parse_feed_video_ids(FEED_XML) == ["newest", "older"]


def test_parse_garbage_is_empty():
    assert parse_feed_video_ids("not xml at all") == []


def test_fetch_feed():
    session = FakeHttpSession([FakeResponse(text=FEED_XML)])
    reader = FeedReader(http=JsonHttpClient(session=session, base_delay=0))

    result = reader.fetch_feed_video_ids("UC123")

    assert result.value == ["newest", "older"]
    assert session.requests[0]["url"] == channel_feed_url("UC123")


def test_fetch_failure_after_retries():
    session = FakeHttpSession([FakeResponse(status_code=500, text="down")] * 3)
    reader = FeedReader(http=JsonHttpClient(session=session, base_delay=0))

    result = reader.fetch_feed_video_ids("UC123")

    assert isinstance(result.error, ExternalError)
    assert len(session.requests) == 3
