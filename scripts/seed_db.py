"""Seed script for the entries collection.

Creates a handful of sample entries through the configured gateway so the
screen has data to show without typing anything first.
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from livenotes.app.config import load_settings
from livenotes.app.domain.entrystore import (
    EntryStoreGateway,
    RemoteWriteError,
    build_entry_store_gateway,
)
from livenotes.app.infra.logging import configure_logging, get_logger

logger = get_logger(__name__)

SEED_CONTENTS = (
    "buy milk",
    "call the plumber about the kitchen sink",
    "book flights for the conference",
)


def seed_entries(
    gateway: EntryStoreGateway, contents: tuple[str, ...] = SEED_CONTENTS
) -> List[str]:
    """Create one entry per content string and return the new IDs."""

    created: List[str] = []
    for content in contents:
        try:
            created.append(gateway.create_entry(content))
        except RemoteWriteError:
            logger.warning(
                "seed_entry_failed", extra={"content": content}, exc_info=True
            )
    return created


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--profile", default=None, help="Config profile to load")
    args = parser.parse_args(argv)

    settings = load_settings(args.profile)
    configure_logging(settings.logging)
    gateway = build_entry_store_gateway(settings)
    created = seed_entries(gateway)
    print(f"Seeded {len(created)} entries into {settings.store.backend} store.")


if __name__ == "__main__":
    main()
