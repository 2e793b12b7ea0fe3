"""Frame inference pipeline: result store, scheduler, session, overlay."""

from golftracer.pipeline.scheduler import InferenceScheduler
from golftracer.pipeline.session import TracerSession
from golftracer.pipeline.store import ResultStore

__all__ = [
    "InferenceScheduler",
    "ResultStore",
    "TracerSession",
]
