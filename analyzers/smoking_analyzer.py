"""吸烟手势分析器：人脸 + 手部关键点 → 手-嘴距离 → 状态机 → 结果与确认事件"""

import logging
import math
import time
from typing import Callable, List, Optional, Tuple

from analyzers.events import EventHook
from config.analyzer_config import AnalyzerConfig
from detectors.base_detector import run_detection_async
from evaluators.gesture_state_machine import GestureStateMachine, GestureStep
from evaluators.severity import smoking_confidence
from features.landmark_features import closest_hand_to_mouth
from models.data_models import (
    FaceLandmarksResult,
    GesturePhase,
    HandLandmarksResult,
    HandType,
    Landmark,
    SmokingEvent,
    SmokingGestureType,
    SmokingResult,
)

logger = logging.getLogger(__name__)


def _first_face(face_result: Optional[FaceLandmarksResult]) -> Optional[List[Landmark]]:
    if face_result is None or not face_result.is_detected or not face_result.faces:
        return None
    return face_result.faces[0]


def _hand_features(
    hand_result: Optional[HandLandmarksResult],
    face: List[Landmark],
) -> Optional[Tuple[float, HandType]]:
    """所有手中离嘴最近的距离；未检测到手或没有可用指尖时返回 None"""
    if hand_result is None or not hand_result.is_detected or not hand_result.hands:
        return None
    distance, hand = closest_hand_to_mouth(hand_result.hands, hand_result.handedness, face)
    if math.isinf(distance):
        return None
    return distance, hand


class SmokingAnalyzer:
    """
    基于手-嘴距离的吸烟手势检测。

    同一帧必须同时检测到人脸和手。食指/中指指尖中点到嘴部中心的距离
    连续 consecutive_frame_threshold 帧小于 hand_to_mouth_distance_threshold
    时确认吸烟，并在确认的那一帧发送 SmokingEvent。
    """

    def __init__(
        self,
        face_detector,
        hand_detector,
        config: Optional[AnalyzerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if face_detector is None:
            raise ValueError("face_detector 不能为空")
        if hand_detector is None:
            raise ValueError("hand_detector 不能为空")

        config = config or AnalyzerConfig()
        self._face_detector = face_detector
        self._hand_detector = hand_detector
        self._state = GestureStateMachine(
            threshold=config.hand_to_mouth_distance_threshold,
            confirm_frames=config.smoking_consec_frames,
            trigger_below=True,
            clock=clock,
            name="smoking",
        )
        self.smoking_detected = EventHook("smoking_detected")

    @property
    def hand_to_mouth_distance_threshold(self) -> float:
        return self._state.threshold

    @hand_to_mouth_distance_threshold.setter
    def hand_to_mouth_distance_threshold(self, value: float):
        self._state.threshold = value

    @property
    def consecutive_frame_threshold(self) -> int:
        return self._state.confirm_frames

    @consecutive_frame_threshold.setter
    def consecutive_frame_threshold(self, value: int):
        self._state.confirm_frames = value

    @property
    def phase(self) -> GesturePhase:
        return self._state.phase

    @property
    def consecutive_frames(self) -> int:
        return self._state.frame_count

    def subscribe(self, handler: Callable[[SmokingEvent], None]) -> None:
        self.smoking_detected.subscribe(handler)

    def unsubscribe(self, handler: Callable[[SmokingEvent], None]) -> None:
        self.smoking_detected.unsubscribe(handler)

    def apply_config(self, config: AnalyzerConfig):
        """更新阈值并重置状态"""
        self.hand_to_mouth_distance_threshold = config.hand_to_mouth_distance_threshold
        self.consecutive_frame_threshold = config.smoking_consec_frames
        self.reset()

    def reset(self):
        self._state.reset()

    def analyze(self, image_data: bytes) -> SmokingResult:
        """
        分析一帧图像的吸烟手势。

        先检测人脸，未检测到人脸时不再调用手部检测器。
        检测器异常按未检测处理，不会抛出。
        """
        try:
            features = None
            face = _first_face(self._face_detector.detect(image_data))
            if face is not None:
                features = _hand_features(self._hand_detector.detect(image_data), face)
        except Exception:
            logger.warning("吸烟分析出错，按未检测处理", exc_info=True)
            features = None
        return self._update(features)

    async def analyze_async(self, image_data: bytes) -> SmokingResult:
        """analyze() 的异步版本"""
        try:
            features = None
            face = _first_face(await run_detection_async(self._face_detector, image_data))
            if face is not None:
                hand_result = await run_detection_async(self._hand_detector, image_data)
                features = _hand_features(hand_result, face)
        except Exception:
            logger.warning("吸烟分析出错，按未检测处理", exc_info=True)
            features = None
        return self._update(features)

    def _update(self, features: Optional[Tuple[float, HandType]]) -> SmokingResult:
        if features is None:
            self._state.reset()
            return SmokingResult()

        distance, hand = features
        step = self._state.update(distance)

        result = SmokingResult(
            is_smoking_detected=step.is_confirmed,
            hand_to_mouth_distance=distance,
            detected_hand=hand,
            consecutive_frames=step.frame_count,
            duration=step.duration,
        )

        if step.just_confirmed:
            self._emit(result, step)

        return result

    def _emit(self, result: SmokingResult, step: GestureStep):
        event = SmokingEvent(
            hand_to_mouth_distance=result.hand_to_mouth_distance,
            detected_hand=result.detected_hand,
            consecutive_frames=step.frame_count,
            duration=step.duration,
            confidence=smoking_confidence(result.hand_to_mouth_distance, self.hand_to_mouth_distance_threshold),
            gesture_type=SmokingGestureType.CONFIRMED,
        )
        logger.warning(
            "检测到吸烟: 距离=%.3f, 手=%s", result.hand_to_mouth_distance, result.detected_hand.value
        )
        self.smoking_detected.emit(event)
