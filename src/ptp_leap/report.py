"""Structured step reporting for scenario runs."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ptp_leap.config import config

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=(level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class StepReporter:
    """Append-only JSON log of scenario steps."""

    path: Path
    enabled: bool = True
    test_id: str = ""
    labels: list[str] = field(default_factory=list)

    def by(self, step: str, metadata: dict[str, Any] | None = None) -> None:
        logger.info("STEP: %s", step)
        if not self.enabled:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "test_id": self.test_id,
            "labels": list(self.labels),
            "step": step,
            "metadata": metadata or {},
        }
        with self.path.open("a", encoding="utf-8") as fp:
            fp.write(json.dumps(record, ensure_ascii=True) + "\n")

