"""Processing counters reported by the service's stats endpoint."""

import threading
from datetime import datetime, timezone
from typing import Any


class ProcessingStats:
    """Counts successfully processed images.

    Owned by the service; the caller records a run only after the pipeline
    has finished writing its output.
    """

    def __init__(self, name: str = "Bongo Cat"):
        self.name = name
        self._processed_images = 0
        self._lock = threading.Lock()

    @property
    def processed_images(self) -> int:
        return self._processed_images

    def record_processed(self) -> str:
        with self._lock:
            self._processed_images += 1
            total = self._processed_images
        return f"Image processed with bongo cat arms ({total} total)"

    def snapshot(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "processedImages": self._processed_images,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
