import sys
import os

# Add project root to sys.path so tests can import from all modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from hypothesis import settings

from detectors.base_detector import LandmarkDetectorBase
from models.data_models import FaceLandmarksResult, HandLandmarksResult, HandType, Landmark
from models.landmark_topology import (
    FACE_MESH_LANDMARK_COUNT,
    HAND_LANDMARK_COUNT,
    INDEX_FINGER_TIP,
    LEFT_EYE_INDICES,
    MIDDLE_FINGER_TIP,
    MOUTH_CENTER_INDEX,
    RIGHT_EYE_INDICES,
)

# CI profile: more examples for thorough testing
settings.register_profile("ci", max_examples=200)
# Dev profile: fewer examples for faster iteration
settings.register_profile("dev", max_examples=100)
# Default to dev profile
settings.load_profile("dev")

MOUTH_POSITION = (0.5, 0.7, 0.0)
EYE_WIDTH = 0.1


def _place_eye(landmarks, indices, cx, cy, ear):
    """按 6 点顺序摆放一只眼睛，使其 EAR 恰为 ear"""
    half_w = EYE_WIDTH / 2.0
    half_v = ear * EYE_WIDTH / 2.0
    points = [
        (cx - half_w, cy),           # p1 眼角
        (cx - 0.02, cy - half_v),    # p2 上1
        (cx + 0.02, cy - half_v),    # p3 上2
        (cx + half_w, cy),           # p4 眼角
        (cx + 0.02, cy + half_v),    # p5 下1
        (cx - 0.02, cy + half_v),    # p6 下2
    ]
    for idx, (x, y) in zip(indices, points):
        landmarks[idx] = Landmark(x=x, y=y, z=0.0, index=idx)


def make_face(ear=0.3, right_ear=None, count=FACE_MESH_LANDMARK_COUNT):
    """生成一张人脸的关键点，左右眼 EAR 可分别指定"""
    landmarks = [Landmark(x=0.5, y=0.5, z=0.0, index=i) for i in range(count)]
    if count > max(LEFT_EYE_INDICES):
        _place_eye(landmarks, LEFT_EYE_INDICES, 0.4, 0.4, ear)
    if count > max(RIGHT_EYE_INDICES):
        _place_eye(landmarks, RIGHT_EYE_INDICES, 0.6, 0.4, ear if right_ear is None else right_ear)
    if count > MOUTH_CENTER_INDEX:
        x, y, z = MOUTH_POSITION
        landmarks[MOUTH_CENTER_INDEX] = Landmark(x=x, y=y, z=z, index=MOUTH_CENTER_INDEX)
    return landmarks


def make_hand(distance=0.05, count=HAND_LANDMARK_COUNT):
    """生成一只手，食指/中指指尖中点到嘴部中心的距离恰为 distance"""
    mx, my, mz = MOUTH_POSITION
    landmarks = [Landmark(x=0.9, y=0.9, z=0.0, index=i) for i in range(count)]
    if count > INDEX_FINGER_TIP:
        landmarks[INDEX_FINGER_TIP] = Landmark(x=mx + distance, y=my - 0.01, z=mz, index=INDEX_FINGER_TIP)
    if count > MIDDLE_FINGER_TIP:
        landmarks[MIDDLE_FINGER_TIP] = Landmark(x=mx + distance, y=my + 0.01, z=mz, index=MIDDLE_FINGER_TIP)
    return landmarks


def face_result(ear=0.3, detected=True, **kwargs):
    if not detected:
        return FaceLandmarksResult()
    return FaceLandmarksResult(is_detected=True, faces=[make_face(ear, **kwargs)], detection_confidence=0.9)


def hand_result(*distances, handedness=None, detected=True):
    if not detected or not distances:
        return HandLandmarksResult()
    return HandLandmarksResult(
        is_detected=True,
        hands=[make_hand(d) for d in distances],
        handedness=list(handedness) if handedness is not None else [HandType.RIGHT] * len(distances),
    )


class ScriptedDetector(LandmarkDetectorBase):
    """按脚本依次返回结果的检测器，最后一个结果会重复；Exception 实例会被抛出"""

    detector_name = "Scripted Detector"

    def __init__(self, results):
        super().__init__()
        self._results = list(results)
        self.calls = 0
        self.initialize()

    def _initialize_detector(self):
        pass

    def _perform_detection(self, image_data):
        item = self._results[min(self.calls, len(self._results) - 1)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return item


class FakeClock:
    """每次调用前进固定步长的时钟"""

    def __init__(self, start=100.0, step=0.0):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()
