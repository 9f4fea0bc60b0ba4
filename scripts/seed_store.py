"""Seed (or reset) the configured entity store with the demo roster.

Usage: python -m scripts.seed_store [--reset]
"""
import argparse
import asyncio

from lovehub.config import get_settings
from lovehub.store import build_store


async def seed(reset: bool) -> None:
    store = build_store(get_settings())
    try:
        if reset:
            await store.reset()
            print("Store reset to the seed dataset.")
        elif await store.ensure_seeded():
            print("Seeded empty collections.")
        else:
            print("Store already seeded, skipping.")
        for kind, count in (await store.counts()).items():
            print(f"  {kind}: {count}")
    finally:
        await store.close()


def main():
    parser = argparse.ArgumentParser(description="Seed the LoveHub store")
    parser.add_argument("--reset", action="store_true", help="Discard all data and reseed")
    args = parser.parse_args()
    asyncio.run(seed(args.reset))


if __name__ == "__main__":
    main()
