"""
Manual trigger for one-off crawls.

    sponsorwatch crawl-video <video_id> [--channel theo] [--send-notifications true]
    sponsorwatch crawl-feed [--channel davis]
    sponsorwatch backfill [--channel micky] [--limit 400|all] [--concurrency 3] [--enqueue]
    sponsorwatch link-post <video_id> <x_post_url> [--channel theo]

--channel may also come before the subcommand.
Prints the summary (or the error) as JSON on stdout; logs go to stderr.
Exit code 1 on a crawl error.
"""
import argparse
import json
import sys
from typing import Optional

from sponsorwatch.core.channels import THEO, resolve_profile
from sponsorwatch.core.logging import setup_logging
from sponsorwatch.core.settings import get_settings

TRUE_VALUES = {"1", "true", "yes", "y", "on"}
FALSE_VALUES = {"0", "false", "no", "n", "off"}


def parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"expected a boolean, got {value!r}")


def parse_limit(value: str):
    if value.strip().lower() == "all":
        return "all"
    try:
        limit = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("limit must be a positive integer or 'all'")
    if limit < 1:
        raise argparse.ArgumentTypeError("limit must be a positive integer or 'all'")
    return limit


def parse_concurrency(value: str) -> int:
    try:
        concurrency = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("concurrency must be a positive integer")
    if concurrency < 1:
        raise argparse.ArgumentTypeError("concurrency must be a positive integer")
    return concurrency


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sponsorwatch", description="Run a single crawl operation.")
    parser.add_argument("--channel", default=THEO.channel_id, help="channel id or key (theo, davis, micky)")
    # Also accepted after the subcommand; SUPPRESS keeps the top-level value when omitted
    channel_opt = argparse.ArgumentParser(add_help=False)
    channel_opt.add_argument("--channel", default=argparse.SUPPRESS, help="channel id or key (theo, davis, micky)")
    sub = parser.add_subparsers(dest="command", required=True)

    video = sub.add_parser("crawl-video", parents=[channel_opt], help="crawl one video")
    video.add_argument("video_id", nargs="?")
    video.add_argument("--video-id", dest="video_id_opt")
    video.add_argument("--send-notifications", type=parse_bool, default=False)

    sub.add_parser("crawl-feed", parents=[channel_opt], help="crawl every video in the channel feed")

    backfill = sub.add_parser("backfill", parents=[channel_opt], help="walk the uploads playlist")
    backfill.add_argument("--limit", type=parse_limit, default=400)
    backfill.add_argument("--concurrency", type=parse_concurrency, default=3)
    backfill.add_argument("--enqueue", action="store_true", help="hand off to the rq worker instead")

    link = sub.add_parser("link-post", parents=[channel_opt], help="link an X post to a video")
    link.add_argument("video_id")
    link.add_argument("post_url")

    return parser


def _emit(result) -> int:
    if result.is_ok:
        print(json.dumps(result.value.model_dump(mode="json"), indent=2))
        return 0
    print(json.dumps({"error": result.error.kind, "message": result.error.message}, indent=2))
    return 1


def main(argv: Optional[list] = None, deps=None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    profile = resolve_profile(args.channel)
    if profile is None:
        print(json.dumps({"error": "invalid_input", "message": f"Unknown channel: {args.channel}"}))
        return 1

    if args.command == "backfill" and args.enqueue:
        from sponsorwatch.workers.jobs import backfill_channel_job
        from sponsorwatch.workers.queue import enqueue_backfill

        job = enqueue_backfill(backfill_channel_job, profile.channel_id, args.limit, args.concurrency)
        print(json.dumps({"enqueued": job.id, "channel_id": profile.channel_id}))
        return 0

    from sponsorwatch.workers import orchestrator
    from sponsorwatch.workers.deps import build_deps

    deps = deps or build_deps(profile, settings)

    if args.command == "crawl-video":
        return _emit(orchestrator.crawl_video(deps, args.video_id_opt or args.video_id or "", args.send_notifications))
    if args.command == "crawl-feed":
        return _emit(orchestrator.crawl_feed(deps))
    if args.command == "backfill":
        return _emit(orchestrator.backfill_channel(deps, args.limit, concurrency=args.concurrency))
    return _emit(orchestrator.link_social_post(deps, args.video_id, args.post_url))


def run():
    settings = get_settings()
    setup_logging(level=settings.log_level, structured=settings.log_structured, stream=sys.stderr)
    sys.exit(main())


if __name__ == "__main__":
    run()
