"""手部关键点检测模块，基于 MediaPipe Hands"""

import logging

import mediapipe as mp

from detectors.base_detector import LandmarkDetectorBase
from detectors.face_detector import decode_image, to_landmarks
from models.data_models import HandLandmarksResult, HandType

logger = logging.getLogger(__name__)


def parse_handedness(classification) -> HandType:
    """MediaPipe handedness 分类 → HandType，"Left" 以外的标签记为右手"""
    if classification is None or not classification.classification:
        return HandType.UNKNOWN
    label = classification.classification[0].label
    return HandType.LEFT if label == "Left" else HandType.RIGHT


class MediaPipeHandDetector(LandmarkDetectorBase):
    """使用 MediaPipe Hands 检测手部 21 个关键点及左右手"""

    detector_name = "Hand Landmarker"

    def __init__(self):
        super().__init__()
        self._hands = None

    def _initialize_detector(self):
        self._hands = mp.solutions.hands.Hands(
            max_num_hands=self.options.max_num_results,
            min_detection_confidence=self.options.min_detection_confidence,
            min_tracking_confidence=self.options.min_tracking_confidence,
        )

    def _perform_detection(self, image_data: bytes) -> HandLandmarksResult:
        result = HandLandmarksResult()

        rgb_frame = decode_image(image_data)
        if rgb_frame is None:
            logger.warning("无法解码图像 (%d 字节)", len(image_data or b""))
            return result

        results = self._hands.process(rgb_frame)

        if not results.multi_hand_landmarks:
            return result

        for hand in results.multi_hand_landmarks:
            landmarks = to_landmarks(hand.landmark)
            if landmarks:
                result.hands.append(landmarks)

        for classification in results.multi_handedness or []:
            result.handedness.append(parse_handedness(classification))

        result.is_detected = len(result.hands) > 0
        return result

    def _release_detector(self):
        if self._hands is not None:
            self._hands.close()
            self._hands = None
