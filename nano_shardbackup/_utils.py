import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP

logger = logging.getLogger("nano-shardbackup")

BYTES_PER_MB = 1024.0 * 1024


def generate_blob_name() -> str:
    """Return a fresh, opaque name for a blob in the repository's index directory."""
    return str(uuid.uuid4())


def round_half_up(value: float, places: int = 3) -> float:
    """Round a float to ``places`` decimals, ties away from zero.

    The float is converted through its shortest repr so that e.g. 0.0125 rounds
    to 0.013 rather than being skewed by its binary representation.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def bytes_to_mb(num_bytes: int) -> float:
    return round_half_up(num_bytes / BYTES_PER_MB, 3)
