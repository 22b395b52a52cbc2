from __future__ import annotations

from app.core.config import get_settings

settings = get_settings()


def _clamp_batch_size(value: int) -> int:
    return max(1, min(1000, int(value)))


def _clamp_scan_interval(value: int) -> int:
    return max(1, min(300, int(value)))


ROUND_BATCH_SIZE = _clamp_batch_size(settings.battle_royale_round_batch_size)
ROUND_SCAN_INTERVAL_SECONDS = _clamp_scan_interval(settings.battle_royale_round_scan_interval_seconds)

__all__ = ["ROUND_BATCH_SIZE", "ROUND_SCAN_INTERVAL_SECONDS"]
