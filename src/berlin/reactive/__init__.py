"""Reactive layer — change propagation for watch mode.

Connects debounced file batches to incremental rebuilds through the CSS
dependency graph and the batch broadcaster.
"""

from berlin.reactive.broadcaster import Batch, BatchBroadcaster, Subscription
from berlin.reactive.graph import Resolutions, ResolutionsBuilder, build_resolutions
from berlin.reactive.pipeline import WatchPipeline

__all__ = [
    "Batch",
    "BatchBroadcaster",
    "Resolutions",
    "ResolutionsBuilder",
    "Subscription",
    "WatchPipeline",
    "build_resolutions",
]
