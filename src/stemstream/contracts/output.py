"""Output image contract."""

from typing import Optional

from stemstream.contracts.base import require


def assert_image_number_in_range(image_number: int, num_pixels: int,
                                 source: Optional[str] = None) -> None:
    """Every image number must address a pixel of the output image.

    Image numbers are 1-based, so the valid range is ``[1, num_pixels]``.
    ``source`` (e.g. "block 3 @ offset 12345") is appended to the message.
    """
    if 1 <= image_number <= num_pixels:
        return
    message = (f"Output contract violated: image number {image_number} "
               f"outside [1, {num_pixels}]")
    if source:
        message = f"{message} in {source}"
    require(False, message)
