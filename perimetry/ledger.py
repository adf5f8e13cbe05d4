"""
Location ledger: the set of grid cells already presented as probes during
one quadrant test.
"""

from typing import Iterator, Tuple

from perimetry.geometry import MAX_PRECISION, Point, round_half_up

LedgerKey = Tuple[float, float]


class LocationLedger:
    """
    Membership set of quantized probe coordinates.

    Coordinates are quantized with round_half_up() at a fixed precision, so
    two computations that land on the same cell share a key. Inserts are
    idempotent and entries are never removed; a new quadrant test gets a
    new ledger.

    Parameters:
        precision: Decimal places kept when quantizing coordinates
    """

    def __init__(self, precision: int = 0):
        if not 0 <= precision <= MAX_PRECISION:
            raise ValueError(
                f"precision must be between 0 and {MAX_PRECISION}, got {precision}"
            )
        self._precision = precision
        self._tested: dict[LedgerKey, bool] = {}

    @property
    def precision(self) -> int:
        return self._precision

    def key(self, x: float, y: float) -> LedgerKey:
        """Quantize (x, y) into a stable ledger key."""
        return (
            round_half_up(float(x), self._precision),
            round_half_up(float(y), self._precision),
        )

    def is_tested(self, x: float, y: float) -> bool:
        return self.key(x, y) in self._tested

    def mark_tested(self, point: Point) -> bool:
        """
        Record a probed location.

        Parameters:
            point: The probed point; its outcome is irrelevant to the ledger

        Returns:
            True if the location was new, False if it was already recorded
        """
        key = self.key(point.x, point.y)
        if key in self._tested:
            return False
        self._tested[key] = True
        return True

    def __contains__(self, point: object) -> bool:
        if not isinstance(point, Point):
            return False
        return self.is_tested(point.x, point.y)

    def __len__(self) -> int:
        return len(self._tested)

    def __iter__(self) -> Iterator[LedgerKey]:
        return iter(self._tested)
