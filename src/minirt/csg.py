"""
Constructive solid geometry over ordered hit lists.

Each node owns its two child surfaces. The children's hits are merged into one
sorted stream and walked with a depth counter: a front-face hit enters a solid
(+1), a back-face hit leaves one (-1). Which transitions are reported decides
the boolean operation.
"""
from dataclasses import dataclass
from operator import attrgetter

from minirt import constants
from minirt.materials import Hit
from minirt.surfaces import Surface
from minirt.vector import Ray

_by_distance = attrgetter("distance")


def _coincide(a, b):
    return a == b or abs(a - b) < constants.DUPLICATE_HIT_EPSILON


def remove_duplicate_hits(hits: list[Hit]) -> list[Hit]:
    """
    Cancel coincident opposite-facing hits in a sorted list.

    Two surfaces touching at the same distance, one entered and one left,
    describe no boundary at all. Exit sentinels at infinity coincide with each
    other. Single left-to-right pass.
    """
    kept = []
    for hit in hits:
        if kept:
            last = kept[-1]
            if (last.is_front_face != hit.is_front_face
                    and _coincide(last.distance, hit.distance)):
                kept.pop()
                continue
        kept.append(hit)
    return kept


def merge_hits(*streams) -> list[Hit]:
    """Concatenate hit lists, stable-sort by distance and cancel duplicates."""
    merged = [hit for stream in streams for hit in stream]
    merged.sort(key=_by_distance)
    return remove_duplicate_hits(merged)


@dataclass(frozen=True, eq=False)
class CSGNode(Surface):
    a: Surface
    b: Surface


@dataclass(frozen=True, eq=False)
class Union(CSGNode):
    """Points inside a or b."""

    def test(self, ray: Ray) -> list[Hit]:
        hits_a = self.a.test(ray)
        hits_b = self.b.test(ray)
        if not hits_a:
            return hits_b
        if not hits_b:
            return hits_a

        result = []
        depth = 0
        for hit in merge_hits(hits_a, hits_b):
            if hit.is_front_face:
                depth += 1
                if depth == 1:
                    result.append(hit)
            else:
                depth -= 1
                if depth == 0:
                    result.append(hit)
        return result


@dataclass(frozen=True, eq=False)
class Intersection(CSGNode):
    """Points inside both a and b."""

    def test(self, ray: Ray) -> list[Hit]:
        hits_a = self.a.test(ray)
        if not hits_a:
            return []
        hits_b = self.b.test(ray)
        if not hits_b:
            return []

        result = []
        depth = 0
        for hit in merge_hits(hits_a, hits_b):
            if hit.is_front_face:
                depth += 1
                if depth == 2:
                    result.append(hit)
            else:
                if depth == 2:
                    result.append(hit)
                depth -= 1
        return result


@dataclass(frozen=True, eq=False)
class Difference(CSGNode):
    """
    Points inside a but not inside b.

    a's hits are counted twice so that the depth reaches 2 exactly when the
    ray is inside a and outside b. Hits reported where b bounds the result
    are flipped so they face the right way.
    """

    def test(self, ray: Ray) -> list[Hit]:
        hits_a = self.a.test(ray)
        if not hits_a:
            return []
        hits_b = self.b.test(ray)
        if not hits_b:
            return hits_a

        result = []
        depth = 0
        emit_front = True
        for hit in merge_hits(hits_a, hits_a, hits_b):
            previous = depth
            depth += 1 if hit.is_front_face else -1
            if previous == 2 or depth == 2:
                result.append(hit if hit.is_front_face == emit_front else hit.flipped())
                emit_front = not emit_front
        return remove_duplicate_hits(result)
