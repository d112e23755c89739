"""Sink interface for finished STEM images."""

from abc import ABC, abstractmethod

__all__ = ['StemImageSink']


class StemImageSink(ABC):
    """Destination for the two finished images of a stream.

    The pipeline calls ``emit()`` exactly once per successful run and never
    after a failed one.
    """

    @abstractmethod
    def emit(self, images) -> None:
        """Persist or transmit ``images`` (a StemImages)."""

    def close(self) -> None:
        pass
