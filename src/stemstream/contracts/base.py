"""Base contract enforcement utilities.

The require() function is the single enforcement mechanism for all contracts.
"""

from typing import Optional

from stemstream.contracts.failure import ContractViolation


def require(condition: bool, message: str, stream_id: Optional[int] = None,
            offset: Optional[int] = None) -> None:
    """Enforce a pipeline contract.

    Called at stage boundaries to verify the preceding stage produced the
    guaranteed invariants. Fail-fast: no recovery, no fallback.

    Parameters
    ----------
    condition : bool
        The invariant that must be true. If False, ContractViolation is raised.

    message : str
        Error message explaining the contract violation (for debugging).

    stream_id, offset : int, optional
        Stream position appended to the message when known.

    Raises
    ------
    ContractViolation
        If condition is False.

    Examples
    --------
    >>> require(header.images_in_block <= 1014, "Header contract: too many images")
    >>> require(mask.shape == (rows, columns), "Mask contract: shape mismatch")
    """
    if not condition:
        raise ContractViolation(message, stream_id=stream_id, offset=offset)
