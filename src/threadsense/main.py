"""Entry point for the ThreadSense refresh service.

Composition root: wires the forum and Groq clients, the insight engine and
the dashboard refresh loop. The only place that knows about concrete classes.
"""

import asyncio
import signal

from threadsense.clients.forum_client import ForumClient
from threadsense.clients.llm_client import GroqClient
from threadsense.config import load_settings
from threadsense.core.cache import AnalysisCache
from threadsense.core.dashboard import DashboardService
from threadsense.core.engine import InsightEngine
from threadsense.core.scheduler import RefreshScheduler
from threadsense.logger import get_logger, setup_logging
from threadsense.models.llm import LLMConfig
from threadsense.utils.rate_limiter import RateLimiter


async def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    logger = get_logger("threadsense.main")

    logger.info("threadsense_starting", version="0.1.0")

    forum = ForumClient(
        base_url=settings.forum_base_url,
        api_key=settings.forum_api_key,
        bearer_token=settings.forum_bearer_token,
    )
    llm = GroqClient(
        api_key=settings.groq_api_key,
        config=LLMConfig(model=settings.groq_model),
        rate_limiter=RateLimiter(settings.llm_requests_per_minute),
    )

    cache = AnalysisCache(ttl_seconds=settings.cache_ttl_seconds)
    engine = InsightEngine(
        llm,
        cache=cache,
        forum=forum,
        content_char_budget=settings.content_char_budget,
    )
    dashboard = DashboardService(
        forum=forum,
        engine=engine,
        llm=llm,
        thread_limit=settings.dashboard_thread_limit,
    )
    scheduler = RefreshScheduler(
        dashboard=dashboard,
        cache=cache,
        interval_minutes=settings.refresh_interval_minutes,
    )

    # --- Graceful shutdown ---
    shutdown_event = asyncio.Event()

    def _signal_handler(sig: int, frame: object) -> None:
        logger.info("shutdown_signal_received", signal=sig)
        shutdown_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        scheduler.start()
        await scheduler.run_initial_refresh()
        logger.info("threadsense_running", interval=f"every {settings.refresh_interval_minutes}m")
        await shutdown_event.wait()
    finally:
        scheduler.stop()
        await forum.close()
        logger.info("threadsense_stopped")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
