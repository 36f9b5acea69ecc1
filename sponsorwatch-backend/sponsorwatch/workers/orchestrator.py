"""
Crawl Orchestrator - fetch -> diff -> persist -> enrich -> notify
Sequences a single video crawl and fans out feed and backfill batches.
"""
from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from sponsorwatch.core.enums import CrawlStage, NotificationType
from sponsorwatch.core.errors import (
    CrawlError,
    InvalidInputError,
    InvalidLinkedUrlError,
    MissingCredentialsError,
    NotFoundError,
    PersistenceError,
)
from sponsorwatch.core.logging import CrawlContext
from sponsorwatch.core.result import Err, Ok, Result
from sponsorwatch.db.context import get_db_session
from sponsorwatch.db.repositories import (
    CommentRepository,
    NotificationRepository,
    SponsorRepository,
    VideoRepository,
)
from sponsorwatch.schemas.crawl import (
    BackfillFailure,
    BackfillSummary,
    CrawlSummary,
    FeedSummary,
    StageFailure,
)
from sponsorwatch.schemas.social import LinkedPostMetrics
from sponsorwatch.services.checkpoints import backfill_state_key
from sponsorwatch.services.notifier import video_live_message
from sponsorwatch.services.social_metrics import parse_post_url
from sponsorwatch.workers.deps import CrawlDeps
from sponsorwatch.workers.pool import run_pool

logger = logging.getLogger(__name__)

MAX_STAGE_FAILURES = 25


def sponsor_id_for_key(sponsor_key: str) -> str:
    return "sponsor_" + hashlib.sha1(sponsor_key.encode("utf-8")).hexdigest()


def notification_id(notification_type: str, video_id: str) -> str:
    return f"{notification_type}:{video_id}"


class StageFailures:
    """Soft failures collected during one crawl, capped at MAX_STAGE_FAILURES."""

    def __init__(self, limit: int = MAX_STAGE_FAILURES):
        self.limit = limit
        self.items: list[StageFailure] = []

    def add(self, stage: CrawlStage, message: str) -> None:
        logger.warning(f"[orchestrator] {stage.value} failed: {message}")
        if len(self.items) < self.limit:
            self.items.append(StageFailure(stage=stage.value, message=message))


# =============================================================================
# Persistence steps
# =============================================================================

def persist_video_and_comments(deps: CrawlDeps, snapshot, comment_page) -> Result[dict]:
    """
    Upsert the video and diff its comments against what is stored.

    Changed text resets a comment's classification. Rows missing upstream are
    only deleted when the fetch was not truncated.
    """
    counts = {"is_new_video": False, "inserted": 0, "updated": 0, "deleted": 0}
    try:
        with get_db_session(deps.session_factory) as db:
            _, is_new = VideoRepository(db).upsert_snapshot(snapshot)
            counts["is_new_video"] = is_new

            comments = CommentRepository(db)
            existing = {c.comment_id: c for c in comments.get_by_video(snapshot.video_id)}
            fetched_ids = set()

            for incoming in comment_page.comments:
                # Time-ordered paging can repeat a comment across pages
                if incoming.comment_id in fetched_ids:
                    continue
                fetched_ids.add(incoming.comment_id)
                current = existing.get(incoming.comment_id)
                if current is None:
                    comments.create(
                        comment_id=incoming.comment_id,
                        video_id=snapshot.video_id,
                        text=incoming.text,
                        author=incoming.author,
                        published_at=incoming.published_at,
                        like_count=incoming.like_count,
                        reply_count=incoming.reply_count,
                        is_editing_mistake=None,
                        is_sponsor_mention=None,
                        is_question=None,
                        is_positive_comment=None,
                        is_processed=False,
                    )
                    counts["inserted"] += 1
                    continue

                if current.text != incoming.text:
                    current.is_editing_mistake = None
                    current.is_sponsor_mention = None
                    current.is_question = None
                    current.is_positive_comment = None
                    current.is_processed = False
                current.text = incoming.text
                current.author = incoming.author
                current.published_at = incoming.published_at
                current.like_count = incoming.like_count
                current.reply_count = incoming.reply_count
                counts["updated"] += 1

            if not comment_page.is_limited:
                stale_ids = [cid for cid in existing if cid not in fetched_ids]
                counts["deleted"] = comments.delete_ids(stale_ids)

            db.commit()
    except SQLAlchemyError as e:
        logger.error(f"[orchestrator] Failed to persist video {snapshot.video_id}: {e}")
        return Err(PersistenceError(f"Failed to persist video {snapshot.video_id}: {e}"))

    return Ok(counts)


def refresh_linked_post(deps: CrawlDeps, video_id: str, failures: StageFailures) -> bool:
    """Refresh cached X metrics for a video with a linked post. Returns True if refreshed."""
    try:
        with get_db_session(deps.session_factory) as db:
            video = VideoRepository(db).get_by_id(video_id)
            stored_url = video.x_url if video else None
    except SQLAlchemyError as e:
        failures.add(CrawlStage.X_REFRESH, f"Failed to load linked X URL for {video_id}: {e}")
        return False

    if not stored_url:
        return False

    parsed = parse_post_url(stored_url)
    if parsed is None:
        failures.add(CrawlStage.X_REFRESH, f"Invalid linked X URL for {video_id}: {stored_url}")
        return False

    if not deps.social.is_configured:
        logger.warning(f"[orchestrator] X_API_KEY missing, skipping X refresh for {video_id}")
        return False

    metrics_result = deps.social.fetch_post_metrics(parsed.post_id)
    if not metrics_result.is_ok:
        failures.add(CrawlStage.X_REFRESH, metrics_result.error.message)
        return False

    try:
        with get_db_session(deps.session_factory) as db:
            VideoRepository(db).update_x_metrics(video_id, parsed.canonical_url, metrics_result.value)
            db.commit()
    except SQLAlchemyError as e:
        failures.add(CrawlStage.X_REFRESH, f"Failed to store X metrics for {video_id}: {e}")
        return False
    return True


def sync_sponsor(deps: CrawlDeps, snapshot, failures: StageFailures) -> None:
    extraction = deps.intelligence.extract_sponsor(
        snapshot.title,
        snapshot.description,
        deps.profile.sponsor_prompt,
        deps.profile.no_sponsor_key,
    )
    if not extraction.is_ok:
        # Existing links stay as they are
        failures.add(CrawlStage.SPONSOR, extraction.error.message)
        return

    sponsor = extraction.value
    try:
        with get_db_session(deps.session_factory) as db:
            sponsors = SponsorRepository(db)
            if not sponsor.has_sponsor:
                sponsors.clear_video_links(snapshot.video_id)
            else:
                sponsor_id = sponsors.upsert(
                    sponsor_id=sponsor_id_for_key(sponsor.sponsor_key),
                    sponsor_key=sponsor.sponsor_key,
                    name=sponsor.sponsor_name,
                )
                sponsors.link_to_video(snapshot.video_id, sponsor_id)
            db.commit()
    except SQLAlchemyError as e:
        failures.add(CrawlStage.SPONSOR_PERSIST, f"Failed to store sponsor for {snapshot.video_id}: {e}")


def load_pending_comments(deps: CrawlDeps, video_id: str) -> Result[list]:
    try:
        with get_db_session(deps.session_factory) as db:
            pending = CommentRepository(db).get_pending(video_id, deps.max_comment_classifications)
            return Ok([(c.comment_id, c.author, c.text) for c in pending])
    except SQLAlchemyError as e:
        return Err(PersistenceError(f"Failed to load pending comments for {video_id}: {e}"))


def classify_pending_comments(deps: CrawlDeps, snapshot, pending: list, failures: StageFailures) -> int:
    """Classify one comment at a time and store each result as it arrives."""
    processed = 0
    for comment_id, author, text in pending:
        result = deps.intelligence.classify_comment(snapshot.title, snapshot.description, author, text)
        if not result.is_ok:
            failures.add(CrawlStage.COMMENT_AI, f"{comment_id}: {result.error.message}")
            continue
        try:
            with get_db_session(deps.session_factory) as db:
                CommentRepository(db).apply_classification(comment_id, result.value)
                db.commit()
        except SQLAlchemyError as e:
            failures.add(CrawlStage.COMMENT_PERSIST, f"{comment_id}: {e}")
            continue
        processed += 1
    return processed


def record_notifications(deps: CrawlDeps, snapshot, failures: StageFailures) -> int:
    """Insert live notifications once per (type, video) and deliver the new ones."""
    message = video_live_message(deps.profile.name, snapshot.title)
    inserted_types: list[str] = []
    try:
        with get_db_session(deps.session_factory) as db:
            notifications = NotificationRepository(db)
            for notification_type in NotificationType:
                created = notifications.insert_if_missing(
                    notification_id(notification_type.value, snapshot.video_id),
                    video_id=snapshot.video_id,
                    type=notification_type.value,
                    message=message,
                )
                if created:
                    inserted_types.append(notification_type.value)
            db.commit()
    except SQLAlchemyError as e:
        failures.add(CrawlStage.NOTIFICATIONS, f"Failed to record notifications for {snapshot.video_id}: {e}")
        return 0

    for notification_type in inserted_types:
        delivery = deps.dispatcher.deliver(notification_type, snapshot, deps.profile.name)
        if not delivery.is_ok:
            failures.add(CrawlStage.NOTIFY_DELIVER, f"{notification_type}: {delivery.error.message}")

    return len(inserted_types)


# =============================================================================
# Operations
# =============================================================================

def crawl_video(deps: CrawlDeps, video_id: str, send_notifications: bool = False) -> Result[CrawlSummary]:
    """
    Crawl one video end to end.

    Fetching the video or its comments and writing them are fatal steps. X
    refresh, sponsor sync, comment classification and notifications only add
    entries to ``stage_failures``.
    """
    video_id = (video_id or "").strip()
    if not video_id:
        return Err(InvalidInputError("videoId is required"))

    with CrawlContext(channel_id=deps.profile.channel_id, video_id=video_id):
        logger.info(f"[orchestrator] Crawling video {video_id}")

        video_result = deps.youtube.get_video_by_id(video_id)
        if not video_result.is_ok:
            logger.warning(f"[orchestrator] Video fetch failed for {video_id}: {video_result.error}")
            return video_result
        snapshot = video_result.value

        comments_result = deps.youtube.list_top_level_comments(video_id, deps.max_comments_per_video)
        if not comments_result.is_ok:
            logger.warning(f"[orchestrator] Comment fetch failed for {video_id}: {comments_result.error}")
            return comments_result
        comment_page = comments_result.value

        persisted = persist_video_and_comments(deps, snapshot, comment_page)
        if not persisted.is_ok:
            return persisted
        counts = persisted.value

        failures = StageFailures()
        refresh_linked_post(deps, video_id, failures)
        sync_sponsor(deps, snapshot, failures)

        pending = load_pending_comments(deps, video_id)
        if not pending.is_ok:
            return pending
        processed = classify_pending_comments(deps, snapshot, pending.value, failures)

        notifications_inserted = 0
        if send_notifications:
            notifications_inserted = record_notifications(deps, snapshot, failures)

        summary = CrawlSummary(
            video_id=video_id,
            is_new_video=counts["is_new_video"],
            comment_count_fetched=len(comment_page.comments),
            comment_fetch_limited=comment_page.is_limited,
            comments_inserted=counts["inserted"],
            comments_updated=counts["updated"],
            comments_deleted=counts["deleted"],
            comments_processed=processed,
            notifications_inserted=notifications_inserted,
            stage_failures=failures.items,
        )
        logger.info(
            f"[orchestrator] Video {video_id} crawled",
            extra={"extra_fields": summary.model_dump(exclude={"stage_failures"})},
        )
        return Ok(summary)


def _crawl_isolated(deps: CrawlDeps, video_id: str, send_notifications: bool) -> Result[CrawlSummary]:
    # One bad video must not take down the batch
    try:
        return crawl_video(deps, video_id, send_notifications)
    except Exception as e:
        logger.exception(f"[orchestrator] Unexpected error crawling {video_id}")
        return Err(CrawlError(f"Unexpected error crawling {video_id}: {e}"))


def crawl_feed(deps: CrawlDeps, channel_id: Optional[str] = None, concurrency: Optional[int] = None) -> Result[FeedSummary]:
    """Crawl every video currently in the channel's feed, with notifications."""
    channel_id = (channel_id or deps.profile.channel_id).strip()
    concurrency = max(1, concurrency or deps.concurrency)

    with CrawlContext(channel_id=channel_id):
        feed_result = deps.feed.fetch_feed_video_ids(channel_id)
        if not feed_result.is_ok:
            logger.error(f"[orchestrator] Feed fetch failed for {channel_id}: {feed_result.error}")
            return feed_result
        video_ids = feed_result.value

        results = run_pool(video_ids, concurrency, lambda vid: _crawl_isolated(deps, vid, True))
        failures = [r.error.message for r in results if not r.is_ok]

        logger.info(f"[orchestrator] Feed crawl complete for {channel_id}: {len(results) - len(failures)} ok, {len(failures)} failed")
        return Ok(FeedSummary(
            channel_id=channel_id,
            crawled_video_ids=video_ids,
            success_count=len(results) - len(failures),
            failure_count=len(failures),
            failures=failures,
        ))


def parse_backfill_limit(limit: Union[int, str, None]) -> Result[Union[int, str]]:
    if isinstance(limit, str) and limit.strip().lower() == "all":
        return Ok("all")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        return Err(InvalidInputError("limit must be a positive integer or 'all'"))
    return Ok(limit)


def backfill_channel(
    deps: CrawlDeps,
    limit: Union[int, str],
    channel_id: Optional[str] = None,
    concurrency: Optional[int] = None,
) -> Result[BackfillSummary]:
    """
    Walk the channel's uploads playlist page by page, crawling each video.

    Only an unbounded (``"all"``) run reads and writes the checkpoint, so a
    bounded run never moves the resume point of a full walk.
    """
    limit_result = parse_backfill_limit(limit)
    if not limit_result.is_ok:
        return limit_result
    limit = limit_result.value

    channel_id = (channel_id or deps.profile.channel_id).strip()
    concurrency = max(1, concurrency or deps.concurrency)
    use_checkpoint = limit == "all"
    state_key = backfill_state_key(channel_id)

    with CrawlContext(channel_id=channel_id):
        playlist_result = deps.youtube.get_uploads_playlist_id(channel_id)
        if not playlist_result.is_ok:
            return playlist_result
        playlist_id = playlist_result.value

        cursor: Optional[str] = None
        if use_checkpoint:
            checkpoint_result = deps.checkpoints.get(state_key)
            if not checkpoint_result.is_ok:
                return checkpoint_result
            if checkpoint_result.value is not None:
                cursor = checkpoint_result.value.cursor
                logger.info(f"[backfill] Resuming {channel_id} from cursor {cursor}")

        remaining: float = float("inf") if use_checkpoint else limit
        crawled = 0
        failures: list[BackfillFailure] = []

        while remaining > 0:
            page_result = deps.youtube.list_playlist_video_ids(playlist_id, cursor)
            if not page_result.is_ok:
                return page_result
            page = page_result.value

            if not page.video_ids and not page.next_page_token:
                break

            batch = page.video_ids[: int(min(len(page.video_ids), remaining))]
            results = run_pool(batch, concurrency, lambda vid: _crawl_isolated(deps, vid, False))
            for video_id, result in zip(batch, results):
                if result.is_ok:
                    crawled += 1
                else:
                    failures.append(BackfillFailure(video_id=video_id, message=result.error.message))

            remaining -= len(batch)
            cursor = page.next_page_token
            logger.info(f"[backfill] {channel_id}: crawled {crawled}, failed {len(failures)}, next cursor {cursor}")

            if use_checkpoint:
                saved = deps.checkpoints.set(state_key, cursor, {
                    "channel_id": channel_id,
                    "uploads_playlist_id": playlist_id,
                    "limit": "all",
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })
                if not saved.is_ok:
                    return saved

            if not cursor:
                break

        return Ok(BackfillSummary(
            channel_id=channel_id,
            crawled=crawled,
            failure_count=len(failures),
            failures=failures,
            remaining_cursor=cursor,
        ))


def link_social_post(deps: CrawlDeps, video_id: str, post_url: str) -> Result[LinkedPostMetrics]:
    """Attach an X post to a video and store its current metrics."""
    video_id = (video_id or "").strip()
    if not video_id:
        return Err(InvalidInputError("videoId is required"))

    parsed = parse_post_url(post_url)
    if parsed is None:
        return Err(InvalidLinkedUrlError("xPostUrl must be a valid x.com or twitter.com post URL"))

    if not deps.social.is_configured:
        return Err(MissingCredentialsError("X_API_KEY is required"))

    metrics_result = deps.social.fetch_post_metrics(parsed.post_id)
    if not metrics_result.is_ok:
        return metrics_result
    metrics = metrics_result.value

    try:
        with get_db_session(deps.session_factory) as db:
            updated = VideoRepository(db).update_x_metrics(video_id, parsed.canonical_url, metrics)
            if not updated:
                return Err(NotFoundError(f"Video not found: {video_id}"))
            db.commit()
    except SQLAlchemyError as e:
        return Err(PersistenceError(f"Failed to link X post to {video_id}: {e}"))

    logger.info(f"[orchestrator] Linked {parsed.canonical_url} to video {video_id}")
    return Ok(LinkedPostMetrics(
        video_id=video_id,
        x_url=parsed.canonical_url,
        x_views=metrics.view_count,
        x_likes=metrics.like_count,
        x_reposts=metrics.repost_count,
        x_comments=metrics.reply_count,
    ))
