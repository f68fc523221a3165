from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

logger = logging.getLogger(__name__)


class PresentationStream(Protocol):
    def pause(self) -> None: ...

    def resume(self) -> None: ...


@contextmanager
def paused(stream: Optional[PresentationStream]) -> Iterator[None]:
    """Hold the stream paused for the duration of the block.

    Resume runs on every exit path, including exceptions raised inside the
    block. A missing stream makes this a no-op.
    """
    if stream is None:
        yield
        return
    stream.pause()
    try:
        yield
    finally:
        stream.resume()
        logger.debug("presentation stream resumed")
