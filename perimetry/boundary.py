"""
Boundary model: per-direction record of the farthest point the user has
reported seeing, used to steer sampling outward of the known-visible region.
"""

from typing import Dict, List, Optional
import math

from perimetry.geometry import Point, TWO_PI, angle_of, distance_of


class BoundaryModel:
    """
    Angular bucket map of the farthest seen distance around a focal point.

    The full circle is split into equal buckets of roughly `bucket_width`
    radians. Each bucket stores the largest focal distance at which a probe
    in that direction was seen. Stored distances only ever grow; a missing
    bucket means there is no visibility evidence in that direction yet.

    Parameters:
        focal: Origin for all angle and distance measurements
        bucket_width: Nominal angular width of a bucket in radians
        tolerance: Half-width of the angular neighbourhood consulted by
            is_beyond_boundary()
    """

    def __init__(self, focal: Point, bucket_width: float = 0.05, tolerance: float = 0.1):
        if bucket_width <= 0:
            raise ValueError(f"bucket_width must be positive, got {bucket_width}")
        if tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {tolerance}")

        self._focal = focal
        self._num_buckets = max(1, int(round(TWO_PI / bucket_width)))
        self._bucket_width = TWO_PI / self._num_buckets
        self._span = int(round(tolerance / self._bucket_width))
        self._buckets: Dict[int, float] = {}

    @property
    def focal(self) -> Point:
        return self._focal

    @property
    def num_buckets(self) -> int:
        return self._num_buckets

    @property
    def bucket_width(self) -> float:
        """Actual bucket width after dividing the circle evenly."""
        return self._bucket_width

    def bucket_of(self, angle: float) -> int:
        """
        Map an angle to its bucket index.

        Parameters:
            angle: Direction in radians (any range)

        Returns:
            Bucket index in [0, num_buckets)
        """
        index = int(math.floor((angle + math.pi) % TWO_PI / self._bucket_width))
        # Floating point can land exactly on 2π after the modulo
        return index % self._num_buckets

    def neighbourhood(self, bucket: int) -> List[int]:
        """Bucket indices within the angular tolerance of `bucket`, wrapping at ±π."""
        if 2 * self._span + 1 >= self._num_buckets:
            return list(range(self._num_buckets))
        return [(bucket + offset) % self._num_buckets for offset in range(-self._span, self._span + 1)]

    def update(self, point: Point) -> bool:
        """
        Record a probe outcome.

        Only seen points carry visibility evidence. A bucket keeps the
        farthest seen distance in its direction.

        Parameters:
            point: The probed point with its outcome

        Returns:
            True if the stored distance for the point's bucket changed
        """
        if not point.seen:
            return False

        bucket = self.bucket_of(angle_of(point, self._focal))
        distance = distance_of(point, self._focal)

        stored = self._buckets.get(bucket)
        if stored is None or distance > stored:
            self._buckets[bucket] = distance
            return True
        return False

    def evidence_near(self, point: Point) -> List[float]:
        """Stored distances in the angular neighbourhood of a point's direction."""
        bucket = self.bucket_of(angle_of(point, self._focal))
        return [
            self._buckets[neighbour]
            for neighbour in self.neighbourhood(bucket)
            if neighbour in self._buckets
        ]

    def is_beyond_boundary(self, point: Point) -> bool:
        """
        Check whether a point lies outward of the known-visible region.

        With no evidence near the point's direction every point qualifies.
        Otherwise the point must be strictly farther from the focal point
        than the nearest stored evidence in that neighbourhood.

        Parameters:
            point: Candidate probe

        Returns:
            True if the point is worth probing
        """
        evidence = self.evidence_near(point)
        if not evidence:
            return True
        return distance_of(point, self._focal) > min(evidence)

    def distance_at(self, angle: float) -> Optional[float]:
        """Stored farthest-seen distance for the bucket containing `angle`, if any."""
        return self._buckets.get(self.bucket_of(angle))

    def as_dict(self) -> Dict[int, float]:
        """Copy of the bucket map."""
        return dict(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)
