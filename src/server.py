"""Protean Engine runner for the marketplace domain.

Starts the Engine that processes events asynchronously in production:
- OutboxProcessor: polls the outbox table, publishes events to Redis Streams
- StreamSubscriptions: reads Redis Streams, invokes projectors and event handlers

Usage:
    python src/server.py
    python src/server.py --test-mode   # Drain pending messages and exit
"""

import argparse

from protean.server.engine import Engine

from marketplace.domain import marketplace
from marketplace.utils.logging import configure_logging


def main():
    parser = argparse.ArgumentParser(description="UniMart Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process whatever is pending and stop",
    )
    args = parser.parse_args()

    configure_logging()
    marketplace.init()

    engine = Engine(marketplace, test_mode=args.test_mode)
    engine.run()


if __name__ == "__main__":
    main()
