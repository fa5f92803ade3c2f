"""BetaCrew feed client - fetch the full feed, repair gaps, write the result."""

import asyncio
import logging
import os
import sys
from typing import Optional

from .clients.feed_client import BetaCrewFeedClient
from .config.settings import FeedClientSettings, load_settings
from .exceptions import EmptySequenceSet, TransportError
from .recovery import RecoveryOrchestrator
from .utils.logging import log_error_with_context, setup_logging
from .writers import RecordWriter, create_writer


logger = logging.getLogger(__name__)


class FeedClientService:
    """Wires configuration, logging, client, recovery and output for one run."""

    def __init__(
        self,
        settings: FeedClientSettings,
        writer: Optional[RecordWriter] = None,
        client: Optional[BetaCrewFeedClient] = None,
        configure_logging: bool = True
    ):
        self.settings = settings

        if configure_logging:
            setup_logging(settings.logging, settings.service_name)

        self.client = client or BetaCrewFeedClient(settings.server)
        self.writer = writer or create_writer(settings)
        self.orchestrator = RecoveryOrchestrator(
            self.client,
            writer=self.writer,
            retry_config=settings.recovery
        )
        logger.info("BetaCrew feed client initialized")

    async def run(self) -> int:
        """
        Execute one full run.

        Returns 0 when output was written (partial recovery included) and 1 on
        a fatal error, in which case nothing is written.
        """
        logger.info(
            f"Starting BetaCrew feed client against "
            f"{self.settings.server.host}:{self.settings.server.port}"
        )

        try:
            records = await self.orchestrator.run()
        except TransportError as e:
            logger.error(f"Fatal error: {e}")
            return 1
        except EmptySequenceSet as e:
            logger.error(f"Fatal error: no valid records streamed, nothing to recover ({e})")
            return 1

        report = self.orchestrator.last_report
        logger.info(
            f"Run finished: {len(records)} records written to {report.output_location}, "
            f"{len(report.failed)} sequences unrecoverable"
        )
        logger.debug(f"Client stats: {self.client.get_stats()}")
        return 0


async def main(config_file: Optional[str] = None) -> int:
    """Main entry point."""
    config_file = config_file or os.getenv("CONFIG_FILE")
    settings = load_settings(config_file)
    service = FeedClientService(settings)

    try:
        return await service.run()
    except Exception as e:
        log_error_with_context(logger, e, "service run", config_file=config_file)
        return 1


def run():
    """Console script entry point."""
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
