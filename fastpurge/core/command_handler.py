"""Command Handler: Orchestrates the purge command.

Receives the input sources from the main entry point (main.py), turns each
one into a chunk sequence and hands it to the PurgeDispatcher. Inputs are
processed one after another; the chunks of a single input are delivered
concurrently.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from fastpurge.core.services.chunker import iter_request_bodies
from fastpurge.core.services.dispatcher import PurgeDispatcher
from fastpurge.domain.interfaces.user_interface import UserInterface
from fastpurge.domain.models.purge import DeliveryResult, PurgeConfig
from fastpurge.infrastructure.http.purge_client import FastPurgeClient

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles the purge command and delegates to the dispatcher."""

    def __init__(
        self,
        config: PurgeConfig,
        client: FastPurgeClient,
        dispatcher: PurgeDispatcher,
        ui: UserInterface,
    ):
        self.config = config
        self.client = client
        self.dispatcher = dispatcher
        self.ui = ui

    async def handle_purge(self, files: Sequence[str], stdin: Optional[TextIO] = None) -> List[DeliveryResult]:
        """Purges everything listed in ``files``, or in stdin when empty.

        Returns:
            DeliveryResult for every chunk sent, across all inputs.

        Raises:
            MalformedInputError: An input could not be parsed. Chunks already
                dispatched from it have been delivered.
            OSError: An input file could not be opened.
            SigningError: A request could not be signed.
        """
        results: List[DeliveryResult] = []
        async with self.client:
            if not files:
                results.extend(await self._purge_stream(stdin or sys.stdin, "<stdin>"))
            else:
                for name in files:
                    path = Path(name).expanduser()
                    with open(path, "r", encoding="utf-8") as fp:
                        results.extend(await self._purge_stream(fp, str(path)))

        self.ui.display_summary(results)
        rejected = sum(1 for result in results if not result.succeeded)
        if rejected:
            self.ui.display_warning(
                f"{rejected} of {len(results)} request(s) were not accepted; see the log for details."
            )
        return results

    async def _purge_stream(self, stream: TextIO, source: str) -> List[DeliveryResult]:
        logger.info(
            f"Purging {source} ({self.config.file_type}) via {self.config.method} on {self.config.network}"
        )
        bodies = iter_request_bodies(stream, self.config.file_type)
        return await self.dispatcher.dispatch(bodies)
