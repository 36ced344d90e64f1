"""
Run tracing.

A RunSpan identifies one action invocation in the logs and records how it
ended, so a failed run can be correlated with its alert.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class RunSpan:
    """Timing and outcome of one action run."""

    transaction_name: str
    network: str
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @classmethod
    def start(cls, transaction_name: str, network: str) -> "RunSpan":
        span = cls(transaction_name=transaction_name, network=network)
        logger.info(f"[{transaction_name}] Run {span.run_id} started on network {network}")
        return span

    @property
    def finished(self) -> bool:
        return self.completed_at is not None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def finish(self, error: Optional[BaseException] = None) -> None:
        """Close the span. Finishing twice keeps the first outcome."""
        if self.finished:
            return
        self.completed_at = datetime.now(timezone.utc)
        if error is not None:
            self.error = f"{type(error).__name__}: {error}"
            logger.warning(
                f"[{self.transaction_name}] Run {self.run_id} failed after "
                f"{self.duration_seconds:.2f}s: {self.error}"
            )
        else:
            logger.info(
                f"[{self.transaction_name}] Run {self.run_id} completed in "
                f"{self.duration_seconds:.2f}s"
            )
