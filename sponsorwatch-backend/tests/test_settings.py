import logging

from sponsorwatch.core.channels import CHANNEL_PROFILES, DAVIS, MICKY, THEO, resolve_profile
from sponsorwatch.core.logging import CrawlContext, current_channel_id, current_video_id, resolve_level
from sponsorwatch.core.settings import Settings
from sponsorwatch.workers.scheduler import select_profiles


def _settings(**env):
    return Settings(_env_file=None, **env)


def test_defaults():
    settings = _settings()

    assert settings.max_comments_per_video == 100
    assert settings.max_comment_classifications_per_crawl == 100
    assert settings.crawl_concurrency == 3
    assert settings.poll_interval_seconds == 300
    assert settings.crawler_run_once is False


def test_blank_credentials_are_unset():
    settings = _settings(YT_API_KEY="   ", DISCORD_WEBHOOK_URL="", X_API_KEY=" tok ")

    assert settings.yt_api_key is None
    assert settings.discord_webhook_url is None
    assert settings.x_api_key == "tok"


def test_channel_ids_trimmed_and_deduped():
    settings = _settings(CRAWLER_CHANNEL_IDS=" UC1, UC2 ,,UC1 ")

    assert settings.configured_channel_ids() == ["UC1", "UC2"]


def test_select_profiles_defaults_to_all():
    assert select_profiles(_settings()) == list(CHANNEL_PROFILES.values())


def test_select_profiles_skips_unknown():
    settings = _settings(CRAWLER_CHANNEL_IDS=f"UCunknown,{DAVIS.channel_id},micky,davis")

    assert select_profiles(settings) == [DAVIS, MICKY]


def test_resolve_profile():
    assert resolve_profile(THEO.channel_id) is THEO
    assert resolve_profile("Micky") is MICKY
    assert resolve_profile("") is None
    assert resolve_profile("nobody") is None


def test_profiles_carry_their_sponsor_link():
    for profile in CHANNEL_PROFILES.values():
        assert f"`{profile.no_sponsor_key}/${{SPONSOR_NAME}}`" in profile.sponsor_prompt
        assert profile.sponsor_prompt.endswith(f"'{profile.no_sponsor_key}'")


def test_log_levels():
    assert resolve_level("warn") == logging.WARNING
    assert resolve_level("silent") == logging.CRITICAL
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("nonsense") == logging.INFO


def test_crawl_context_restores_previous_values():
    with CrawlContext(channel_id="UC1"):
        with CrawlContext(video_id="v1"):
            assert current_channel_id.get() == "UC1"
            assert current_video_id.get() == "v1"
        assert current_video_id.get() is None
    assert current_channel_id.get() is None


def test_structured_formatter_includes_context_and_extra_fields():
    from sponsorwatch.core.logging import StructuredFormatter
    import json

    record = logging.LogRecord("sponsorwatch.test", logging.INFO, __file__, 1, "crawled %s", ("v1",), None)
    record.extra_fields = {"comments_inserted": 3}

    with CrawlContext(channel_id="UC1", video_id="v1"):
        line = json.loads(StructuredFormatter().format(record))

    assert line["message"] == "crawled v1"
    assert line["level"] == "INFO"
    assert line["channel_id"] == "UC1"
    assert line["video_id"] == "v1"
    assert line["comments_inserted"] == 3
    assert line["timestamp"].endswith("Z")
