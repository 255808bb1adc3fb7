"agentwatch - classify AI agent panes in tmux and log the fleet summary"

import asyncio

from agentwatch import config
from agentwatch.activity import AgentActivity, summarize_activities
from agentwatch.runtime import bootstrap
from agentwatch.telemetry import configure_logging, get_logger

logger = get_logger(__name__)


async def log_summary(activities: dict[str, AgentActivity]) -> None:
    """Poll callback: one summary line plus the suggested actions"""
    summary = summarize_activities(activities.values())
    logger.info(f"[Watch] {summary.summary}")
    for action in summary.suggested_actions:
        logger.info(f"[Watch]   {action}")


async def watch(interval: float = config.POLL_INTERVAL) -> None:
    """Bootstrap and poll until cancelled"""
    components = bootstrap()
    components.poller.add_callback(log_summary)
    try:
        await components.poller.run(interval)
    finally:
        components.poller.stop()


def main():
    """Entry point"""
    configure_logging()
    try:
        asyncio.run(watch())
    except KeyboardInterrupt:
        logger.info("agentwatch stopped")


if __name__ == "__main__":
    main()
