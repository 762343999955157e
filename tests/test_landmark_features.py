"""几何特征提取单元测试"""

import math

import pytest
from hypothesis import given, strategies as st

from conftest import MOUTH_POSITION, make_face, make_hand
from features.landmark_features import (
    average_eye_aspect_ratio,
    closest_hand_to_mouth,
    eye_aspect_ratio,
    hand_to_mouth_distance,
    has_landmarks,
    landmark_at,
)
from models.data_models import HandType, Landmark
from models.landmark_topology import LEFT_EYE_INDICES, RIGHT_EYE_INDICES

EYE = (0, 1, 2, 3, 4, 5)


def _eye(points):
    return [Landmark(x=x, y=y, z=z, index=i) for i, (x, y, z) in enumerate(points)]


class TestEyeAspectRatio:
    def test_unit_square_eye(self):
        """竖直距离之和 1.0、水平距离 0.5 时 EAR = 1.0"""
        landmarks = _eye([
            (0.0, 0.0, 0.0),   # p1
            (0.1, 0.0, 0.0),   # p2
            (0.4, 0.0, 0.0),   # p3
            (0.5, 0.0, 0.0),   # p4
            (0.4, 0.5, 0.0),   # p5
            (0.1, 0.5, 0.0),   # p6
        ])
        assert eye_aspect_ratio(landmarks, EYE) == pytest.approx(1.0)

    def test_coincident_corners_returns_zero(self):
        landmarks = _eye([
            (0.3, 0.3, 0.0),
            (0.3, 0.2, 0.0),
            (0.3, 0.2, 0.0),
            (0.3, 0.3, 0.0),
            (0.3, 0.4, 0.0),
            (0.3, 0.4, 0.0),
        ])
        assert eye_aspect_ratio(landmarks, EYE) == 0.0

    def test_corners_below_floor_returns_zero(self):
        landmarks = _eye([
            (0.3, 0.3, 0.0),
            (0.3, 0.2, 0.0),
            (0.3, 0.2, 0.0),
            (0.30005, 0.3, 0.0),
            (0.3, 0.4, 0.0),
            (0.3, 0.4, 0.0),
        ])
        assert eye_aspect_ratio(landmarks, EYE) == 0.0

    def test_too_few_landmarks_returns_zero(self):
        landmarks = _eye([(0.0, 0.0, 0.0)] * 5)
        assert eye_aspect_ratio(landmarks, EYE) == 0.0

    def test_uses_depth(self):
        """z 参与距离计算"""
        landmarks = _eye([
            (0.0, 0.0, 0.0),
            (0.1, 0.0, 0.0),
            (0.4, 0.0, 0.0),
            (0.5, 0.0, 0.0),
            (0.4, 0.0, 0.3),
            (0.1, 0.0, 0.3),
        ])
        assert eye_aspect_ratio(landmarks, EYE) == pytest.approx(0.6)

    def test_face_mesh_indices(self):
        face = make_face(ear=0.22)
        assert eye_aspect_ratio(face, LEFT_EYE_INDICES) == pytest.approx(0.22)
        assert eye_aspect_ratio(face, RIGHT_EYE_INDICES) == pytest.approx(0.22)

    @given(st.lists(
        st.tuples(
            st.floats(0.0, 1.0), st.floats(0.0, 1.0), st.floats(-1.0, 1.0),
        ),
        min_size=6, max_size=6,
    ))
    def test_never_nan_or_negative(self, points):
        ear = eye_aspect_ratio(_eye(points), EYE)
        assert math.isfinite(ear)
        assert ear >= 0.0


class TestAverageEyeAspectRatio:
    def test_average_of_both_eyes(self):
        face = make_face(ear=0.2, right_ear=0.3)
        left, right, avg = average_eye_aspect_ratio(face)
        assert left == pytest.approx(0.2)
        assert right == pytest.approx(0.3)
        assert avg == pytest.approx(0.25)

    def test_truncated_face_returns_zeros(self):
        face = make_face(ear=0.3, count=100)
        assert average_eye_aspect_ratio(face) == (0.0, 0.0, 0.0)


class TestHandToMouthDistance:
    def test_midpoint_distance(self):
        assert hand_to_mouth_distance(make_hand(0.08), make_face()) == pytest.approx(0.08)

    def test_three_dimensional(self):
        mx, my, mz = MOUTH_POSITION
        hand = make_hand(0.0)
        hand[8] = Landmark(x=mx, y=my, z=0.3, index=8)
        hand[12] = Landmark(x=mx, y=my, z=0.1, index=12)
        assert hand_to_mouth_distance(hand, make_face()) == pytest.approx(0.2)

    def test_missing_fingertips(self):
        assert hand_to_mouth_distance(make_hand(0.05, count=10), make_face()) is None

    def test_missing_mouth(self):
        assert hand_to_mouth_distance(make_hand(0.05), make_face(count=10)) is None


class TestClosestHandToMouth:
    def test_minimum_across_hands(self):
        hands = [make_hand(0.3), make_hand(0.05)]
        distance, hand = closest_hand_to_mouth(hands, [HandType.LEFT, HandType.RIGHT], make_face())
        assert distance == pytest.approx(0.05)
        assert hand == HandType.RIGHT

    def test_missing_handedness_is_unknown(self):
        hands = [make_hand(0.3), make_hand(0.05)]
        distance, hand = closest_hand_to_mouth(hands, [HandType.LEFT], make_face())
        assert distance == pytest.approx(0.05)
        assert hand == HandType.UNKNOWN

    def test_skips_malformed_hands(self):
        hands = [make_hand(0.01, count=5), make_hand(0.2)]
        distance, hand = closest_hand_to_mouth(hands, [HandType.LEFT, HandType.RIGHT], make_face())
        assert distance == pytest.approx(0.2)
        assert hand == HandType.RIGHT

    def test_no_usable_hand(self):
        distance, hand = closest_hand_to_mouth([], [], make_face())
        assert math.isinf(distance)
        assert hand == HandType.UNKNOWN


class TestIndexHelpers:
    def test_has_landmarks(self):
        face = make_face(count=400)
        assert has_landmarks(face, LEFT_EYE_INDICES)
        assert has_landmarks(face, RIGHT_EYE_INDICES)
        assert not has_landmarks(make_face(count=300), RIGHT_EYE_INDICES)
        assert not has_landmarks(face, ())

    def test_landmark_at_bounds(self):
        hand = make_hand()
        assert landmark_at(hand, 8) is hand[8]
        assert landmark_at(hand, 21) is None
        assert landmark_at(hand, -1) is None
