"""Entry point: wires all components and starts the gRPC server."""

from __future__ import annotations

import logging
import signal
import sys
from concurrent import futures

import grpc

import config
from prioritization.analyzer import EmotionalProfileAnalyzer
from prioritization.calculator import PriorityCalculator
from prioritization.engine import PrioritizationEngine
from prioritization.service import PrioritizationServicer, build_generic_handler
from prioritization.tag_ledger import TagLedger
from prioritization.tags import TagAggregator

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_engine() -> PrioritizationEngine:
    """Construct the engine and its collaborators from :mod:`config`."""
    aggregator = TagAggregator()
    return PrioritizationEngine(
        analyzer=EmotionalProfileAnalyzer(),
        aggregator=aggregator,
        ledger=TagLedger(aggregator, max_events=config.TAG_LEDGER_MAX_EVENTS),
        calculator=PriorityCalculator(
            degraded_confidence_threshold=config.DEGRADED_CONFIDENCE_THRESHOLD,
            max_workers=config.SCORING_MAX_WORKERS,
        ),
        max_workers=config.SCORING_MAX_WORKERS,
    )


def build_server(engine: PrioritizationEngine) -> grpc.Server:
    """Construct and configure the gRPC server with all dependencies wired.

    Args:
        engine: The :class:`~prioritization.engine.PrioritizationEngine`.

    Returns:
        A configured but not-yet-started :class:`grpc.Server`.
    """
    servicer = PrioritizationServicer(engine, popular_tags_limit=config.POPULAR_TAGS_LIMIT)

    server = grpc.server(
        futures.ThreadPoolExecutor(max_workers=config.GRPC_MAX_WORKERS)
    )
    server.add_generic_rpc_handlers((build_generic_handler(servicer),))
    server.add_insecure_port(
        f"{config.GRPC_SERVER_HOST}:{config.GRPC_SERVER_PORT}"
    )
    return server


def main() -> None:
    """Build the engine, start the gRPC server and wait for shutdown.

    ``SIGTERM`` and ``SIGINT`` stop the server with a short grace period.
    Tag submissions live in memory only and are lost on exit.
    """
    server = build_server(build_engine())

    def handle_shutdown(signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, shutting down.", sig_name)
        server.stop(grace=5)
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    server.start()
    logger.info(
        "Prioritization gRPC server listening on %s:%d",
        config.GRPC_SERVER_HOST,
        config.GRPC_SERVER_PORT,
    )
    server.wait_for_termination()


if __name__ == "__main__":
    main()
