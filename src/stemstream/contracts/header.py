"""Header stage contract.

Enforces that a decoded, data-bearing header describes a block the codec can
actually read: the image-number table fits inside the fixed header record and
every image has a non-empty pixel grid.
"""

from typing import Optional

from stemstream.contracts.base import require


def assert_header_valid(header, capacity: int, stream_id: Optional[int] = None,
                        offset: Optional[int] = None) -> None:
    """Enforce header contract.

    Called by the reader right after decoding a non-terminator header and
    before any payload bytes are consumed.

    Parameters
    ----------
    header : Header
        Decoded header (``version != 0``).

    capacity : int
        Number of uint32 words available for image numbers in the record.

    stream_id, offset : int, optional
        Stream id and byte offset of the header, reported on violation.

    Raises
    ------
    ContractViolation
        If the header cannot describe a well-formed block.
    """
    where = {"stream_id": stream_id, "offset": offset}
    require(
        header.images_in_block <= capacity,
        f"Header contract violated: images_in_block={header.images_in_block} "
        f"exceeds image number capacity {capacity}",
        **where,
    )
    require(
        len(header.image_numbers) == header.images_in_block,
        f"Header contract violated: {len(header.image_numbers)} image numbers "
        f"for {header.images_in_block} images",
        **where,
    )
    if header.images_in_block > 0:
        require(
            header.rows > 0 and header.columns > 0,
            f"Header contract violated: empty image grid "
            f"{header.rows}x{header.columns}",
            **where,
        )
