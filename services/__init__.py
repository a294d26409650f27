"""Services around the scoring core: market data, result assembly, request handling."""

from .market_data_worker import MarketDataWorker, split_pair
from .market_snapshot_adapter import build_market_snapshot, snapshot_from_mapping
from .response_assembler import assemble_result

__all__ = [
    "MarketDataWorker",
    "split_pair",
    "build_market_snapshot",
    "snapshot_from_mapping",
    "assemble_result",
]
