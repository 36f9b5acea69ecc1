from rq import Worker
from sponsorwatch.core.logging import setup_logging
from sponsorwatch.core.settings import get_settings
from sponsorwatch.workers.queue import get_queue, get_redis

if __name__ == "__main__":
    settings = get_settings()
    setup_logging(level=settings.log_level, structured=settings.log_structured)
    w = Worker([get_queue()], connection=get_redis())
    w.work()
