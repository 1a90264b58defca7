from __future__ import annotations

import logging

from rich.logging import RichHandler


def configure_logging(level: str = "WARNING") -> None:
    """Send all log records through a rich handler."""
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # librdkafka is chatty at INFO.
    logging.getLogger("kroundtrip.kafka.librdkafka").setLevel(
        max(logging.WARNING, logging.getLogger().level)
    )
