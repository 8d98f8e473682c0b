"""Symbal — dev launcher. Starts the remote function service, or runs one feed refresh."""

import argparse
import asyncio
import json
import logging
import os
import random
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "13013"))


async def _refresh_once(mood: str, count: int, data_dir: Path | None) -> None:
    from symbal.config import load_settings
    from symbal.feed import StoryFeed
    from symbal.generator import StoryGenerator
    from symbal.judge import SubmissionJudge
    from symbal.remote import RemoteClient
    from symbal.storage import Storage

    settings = load_settings(ROOT / ".env")
    if data_dir:
        settings = settings.model_copy(update={"data_dir": data_dir})
    remote = RemoteClient.from_settings(settings)
    rng = random.Random()
    feed = StoryFeed(
        settings=settings,
        storage=Storage(settings.data_dir),
        generator=StoryGenerator(remote, rng),
        judge=SubmissionJudge(remote, rng),
        user_id="local",
    )
    outcome = await feed.refresh(mood, count)
    if outcome.degraded:
        print("Story generation is running in offline mode.")
    print(json.dumps([t.to_wire() for t in outcome.tasks], indent=2, ensure_ascii=False))


def main():
    parser = argparse.ArgumentParser(description="Symbal dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Local cache/progress directory (default: ./data)")
    parser.add_argument("--reload", action="store_true",
                        help="Restart the service when source files change")
    parser.add_argument("--mood", default=None,
                        help="Instead of serving, refresh the feed once for this mood and print it")
    parser.add_argument("--count", type=int, default=3,
                        help="Number of tasks to request with --mood")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.mood is not None:
        asyncio.run(_refresh_once(args.mood, args.count, args.data_dir))
        return

    import uvicorn

    print(f"Starting function service on http://localhost:{PORT}/functions ...")
    uvicorn.run(
        "symbal.service.app:create_app", factory=True,
        host=HOST, port=PORT, reload=args.reload,
    )


if __name__ == "__main__":
    main()
