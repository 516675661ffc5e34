"""
Burst Selector
==============

Captures a short burst of frames and keeps the sharpest one.

This module provides:
    - capture_burst: grab up to N frames at a fixed cadence, score them
      concurrently, select the first maximum
    - BurstSelector: configured wrapper with run metrics

Design Rules:
    - Failed grabs (take_frame returns None) are skipped, not retried
    - Zero usable frames raises EmptyBurstError, never an empty result
    - Scores are computed in worker threads; selection waits for all
    - All accumulation is local to one call, so a cancelled burst
      leaves nothing behind
"""

import asyncio
import inspect
import logging
import time
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from fundus_capture.errors import EmptyBurstError, InvalidParameterError
from fundus_capture.imaging.sharpness import DEFAULT_WORKING_WIDTH, score_sharpness
from fundus_capture.models.frame import BurstResult, Frame, ScoredFrame


logger = logging.getLogger(__name__)


DEFAULT_BURST_COUNT = 5
DEFAULT_INTER_FRAME_DELAY_MS = 110

FrameGrabber = Callable[[], Union[Optional[Frame], Awaitable[Optional[Frame]]]]
Scorer = Callable[[Frame, int], float]


def select_best(scores: Sequence[float]) -> int:
    """
    Index of the highest score. Ties keep the earliest index.

    Raises:
        ValueError: If scores is empty
    """
    if not scores:
        raise ValueError("Cannot select from an empty score list")

    best = 0
    for i in range(1, len(scores)):
        if scores[i] > scores[best]:
            best = i
    return best


async def _grab(take_frame: FrameGrabber) -> Optional[Frame]:
    """Invoke take_frame without blocking the event loop."""
    if inspect.iscoroutinefunction(take_frame):
        result = await take_frame()
    else:
        result = await asyncio.to_thread(take_frame)

    if inspect.isawaitable(result):
        result = await result
    return result


async def capture_burst(
    take_frame: FrameGrabber,
    count: int = DEFAULT_BURST_COUNT,
    inter_frame_delay_ms: int = DEFAULT_INTER_FRAME_DELAY_MS,
    working_width: int = DEFAULT_WORKING_WIDTH,
    scorer: Scorer = score_sharpness,
) -> BurstResult:
    """
    Capture a burst and select the sharpest frame.

    Args:
        take_frame: Camera grab callable (sync or async) returning a
            Frame, or None when no frame is available
        count: Number of grab attempts (> 0)
        inter_frame_delay_ms: Pause between attempts (>= 0)
        working_width: Resize width used by the scorer
        scorer: Sharpness function (frame, working_width) -> score

    Returns:
        BurstResult with every obtained frame and the best index

    Raises:
        InvalidParameterError: If count or delay is out of range
        EmptyBurstError: If every grab returned None
    """
    if count <= 0:
        raise InvalidParameterError(f"Burst count must be positive, got {count}")
    if inter_frame_delay_ms < 0:
        raise InvalidParameterError(
            f"Inter-frame delay must be non-negative, got {inter_frame_delay_ms}"
        )

    delay_sec = inter_frame_delay_ms / 1000.0
    frames: List[Frame] = []
    start_time = time.time()

    for attempt in range(count):
        if attempt > 0 and delay_sec > 0:
            await asyncio.sleep(delay_sec)

        frame = await _grab(take_frame)
        if frame is None:
            logger.warning(f"Frame grab {attempt + 1}/{count} returned no frame")
            continue
        frames.append(frame)

    if not frames:
        logger.warning(f"Empty burst: all {count} grabs failed")
        raise EmptyBurstError(attempts=count)

    # Barrier: selection only after every score is in
    scores = await asyncio.gather(
        *(asyncio.to_thread(scorer, frame, working_width) for frame in frames)
    )

    best_index = select_best(scores)
    result = BurstResult(
        frames=tuple(
            ScoredFrame(index=i, frame=f, score=float(s))
            for i, (f, s) in enumerate(zip(frames, scores))
        ),
        best_index=best_index,
        attempts=count,
    )

    elapsed_ms = (time.time() - start_time) * 1000
    logger.info(
        f"Burst complete: {len(frames)}/{count} frames, "
        f"best={best_index} (score={scores[best_index]:.2f}), "
        f"{elapsed_ms:.0f}ms"
    )
    return result


def capture_burst_sync(
    take_frame: FrameGrabber,
    count: int = DEFAULT_BURST_COUNT,
    inter_frame_delay_ms: int = DEFAULT_INTER_FRAME_DELAY_MS,
    working_width: int = DEFAULT_WORKING_WIDTH,
) -> BurstResult:
    """Blocking wrapper around capture_burst for non-async callers."""
    return asyncio.run(
        capture_burst(
            take_frame,
            count=count,
            inter_frame_delay_ms=inter_frame_delay_ms,
            working_width=working_width,
        )
    )


class BurstSelectorMetrics:
    """Metrics for BurstSelector observability."""

    __slots__ = (
        "bursts_run",
        "empty_bursts",
        "frames_captured",
        "frames_dropped",
        "last_best_score",
    )

    def __init__(self) -> None:
        self.bursts_run: int = 0
        self.empty_bursts: int = 0
        self.frames_captured: int = 0
        self.frames_dropped: int = 0
        self.last_best_score: float = 0.0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "bursts_run": self.bursts_run,
            "empty_bursts": self.empty_bursts,
            "frames_captured": self.frames_captured,
            "frames_dropped": self.frames_dropped,
            "last_best_score": self.last_best_score,
        }


class BurstSelector:
    """
    Configured burst capture with run metrics.

    Attributes:
        count: Grab attempts per burst
        inter_frame_delay_ms: Pause between attempts
        working_width: Scorer resize width
        metrics: Counters across bursts run by this selector

    Example:
        selector = BurstSelector(count=5, inter_frame_delay_ms=110)
        result = await selector.run(camera.read)
        best = result.best_frame
    """

    def __init__(
        self,
        count: int = DEFAULT_BURST_COUNT,
        inter_frame_delay_ms: int = DEFAULT_INTER_FRAME_DELAY_MS,
        working_width: int = DEFAULT_WORKING_WIDTH,
    ) -> None:
        """
        Initialize burst selector.

        Raises:
            InvalidParameterError: If count <= 0 or delay < 0
        """
        if count <= 0:
            raise InvalidParameterError(f"Burst count must be positive, got {count}")
        if inter_frame_delay_ms < 0:
            raise InvalidParameterError(
                f"Inter-frame delay must be non-negative, got {inter_frame_delay_ms}"
            )

        self.count = count
        self.inter_frame_delay_ms = inter_frame_delay_ms
        self.working_width = working_width
        self.metrics = BurstSelectorMetrics()

        logger.info(
            f"BurstSelector initialized: count={count}, "
            f"delay={inter_frame_delay_ms}ms, working_width={working_width}"
        )

    async def run(self, take_frame: FrameGrabber) -> BurstResult:
        """
        Run one burst.

        Raises:
            EmptyBurstError: If every grab returned None
        """
        self.metrics.bursts_run += 1
        try:
            result = await capture_burst(
                take_frame,
                count=self.count,
                inter_frame_delay_ms=self.inter_frame_delay_ms,
                working_width=self.working_width,
            )
        except EmptyBurstError as e:
            self.metrics.empty_bursts += 1
            self.metrics.frames_dropped += e.attempts
            raise

        self.metrics.frames_captured += len(result.frames)
        self.metrics.frames_dropped += result.dropped
        self.metrics.last_best_score = result.best.score
        return result
