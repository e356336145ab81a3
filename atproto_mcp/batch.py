"""
Batch Engine — apply one operation to many targets.

Items are processed strictly in order, one at a time. A failing item is
recorded and the loop moves on; nothing short of cancellation stops the
batch early, and even then every remaining item gets a failure record so
`successful + failed == total == len(results)` always holds.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from .logger import ActivityLog

CANCELLED_MESSAGE = "Cancelled before execution"


@dataclass
class BatchItemResult:
    key: str
    value: Any
    success: bool
    output: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        item: Dict[str, Any] = {"success": self.success, self.key: self.value}
        if self.success:
            item["output"] = self.output
        else:
            item["error"] = self.error
        return item


@dataclass
class BatchReport:
    results: List[BatchItemResult] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    @property
    def summary(self) -> str:
        return f"{self.successful}/{self.total}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


class BatchEngine:
    """Sequential, exhaustive per-item execution with outcome bookkeeping."""

    def __init__(self, activity: Optional[ActivityLog] = None):
        self.activity = activity

    async def run(
        self,
        items: Sequence[Any],
        key: str,
        operation: Callable[[Any], Awaitable[str]],
        *,
        label: Optional[Callable[[Any], Any]] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> BatchReport:
        """
        Run `operation(item)` for every item.

        Args:
            items:     targets, in the order results should be reported
            key:       name the item's identifier is reported under
                       ("text", "handle", "uri")
            operation: async single-item call returning the CLI output
            label:     maps an item to its reported identifier (default: the
                       item itself)
            cancel:    when set, remaining items are not attempted
        """
        label = label or (lambda item: item)
        report = BatchReport()
        start = time.monotonic()

        for index, item in enumerate(items):
            value = label(item)
            if cancel is not None and cancel.is_set():
                report.results.append(BatchItemResult(key, value, False, error=CANCELLED_MESSAGE))
                continue
            try:
                output = await operation(item)
                report.results.append(BatchItemResult(key, value, True, output=output))
            except Exception as exc:
                report.results.append(BatchItemResult(key, value, False, error=str(exc)))
                self._trace("WARN", f"Batch item {index + 1}/{len(items)} failed", {key: value, "error": str(exc)})

        report.duration_ms = int((time.monotonic() - start) * 1000)
        self._trace("INFO", f"Batch {key} complete: {report.summary}", {"duration_ms": report.duration_ms})
        return report

    def _trace(self, level: str, message: str, data: Dict[str, Any]):
        if self.activity is not None:
            self.activity.log(level, message, data)
