"""
Unit Tests for segment connectivity
===================================

Author: Orion Research Team
"""

import numpy as np

from objectmap.clustering.config import OverlapConfig
from objectmap.clustering.intersection import OverlapIntersection, create_intersection
from objectmap.graph.types import BoundingBox, SegmentAttributes


def _segment(bbox_min, bbox_max):
    return SegmentAttributes(bounding_box=BoundingBox(bbox_min, bbox_max))


class TestOverlapIntersection:
    """Axis-aligned box overlap with tolerance"""

    def test_overlapping_boxes_connect(self):
        checker = create_intersection()
        lhs = _segment([0, 0, 0], [1, 1, 1])
        rhs = _segment([0.5, 0.5, 0.5], [1.5, 1.5, 1.5])
        assert checker(lhs, rhs)
        assert checker(rhs, lhs)

    def test_touching_faces_connect(self):
        checker = create_intersection()
        assert checker(_segment([0, 0, 0], [1, 1, 1]), _segment([1, 0, 0], [2, 1, 1]))

    def test_separated_on_one_axis(self):
        checker = create_intersection()
        lhs = _segment([0, 0, 0], [1, 1, 1])
        rhs = _segment([0, 0, 1.8], [1, 1, 2.8])
        assert not checker(lhs, rhs)
        assert not checker(rhs, lhs)

    def test_tolerance_bridges_gap(self):
        lhs = _segment([0, 0, 0], [1, 1, 1])
        rhs = _segment([1.8, 0, 0], [2.8, 1, 1])
        assert not OverlapIntersection().call(lhs, rhs)
        # each box grows by 0.5, closing the 0.8 gap
        assert OverlapIntersection(OverlapConfig(tolerance=0.5)).call(lhs, rhs)

    def test_negative_tolerance_shrinks(self):
        lhs = _segment([0, 0, 0], [1, 1, 1])
        rhs = _segment([0.8, 0, 0], [2, 1, 1])
        assert OverlapIntersection().call(lhs, rhs)
        assert not OverlapIntersection(OverlapConfig(tolerance=-0.2)).call(lhs, rhs)

    def test_far_from_origin(self):
        offset = np.full(3, 1.0e6)
        checker = create_intersection()
        lhs = _segment(offset, offset + 1.0)
        rhs = _segment(offset + 0.5, offset + 1.5)
        assert checker(lhs, rhs)
        assert not checker(lhs, _segment(offset + 2.0, offset + 3.0))

    def test_boxes_are_not_modified(self):
        lhs = _segment([0, 0, 0], [1, 1, 1])
        rhs = _segment([0.5, 0.5, 0.5], [1.5, 1.5, 1.5])
        OverlapIntersection(OverlapConfig(tolerance=0.3)).call(lhs, rhs)
        np.testing.assert_allclose(lhs.bounding_box.min, [0, 0, 0])
        np.testing.assert_allclose(rhs.bounding_box.max, [1.5, 1.5, 1.5])
