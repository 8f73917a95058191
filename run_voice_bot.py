#!/usr/bin/env python3
"""Start the voice bot, restarting it after crashes."""

import asyncio
import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)
# voices/ and data/ are relative to the project root
os.chdir(PROJECT_ROOT)

from dotenv import load_dotenv

load_dotenv(os.path.join(PROJECT_ROOT, ".env"))

MAX_RETRIES = 5
RETRY_DELAY = 30  # seconds
FATAL_ERRORS = ("Conflict", "Unauthorized")


async def run_with_retry():
    from voicebox.bot import main

    for attempt in range(1, MAX_RETRIES + 1):
        try:
            await main()
            return
        except Exception as e:
            err_name = type(e).__name__
            print(f"[voice bot] attempt {attempt}/{MAX_RETRIES} failed ({err_name}): {e}", flush=True)
            if any(name in err_name for name in FATAL_ERRORS) or attempt == MAX_RETRIES:
                sys.exit(1)
            await asyncio.sleep(RETRY_DELAY)


if __name__ == "__main__":
    asyncio.run(run_with_retry())
