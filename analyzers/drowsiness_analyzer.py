"""疲劳分析器：人脸关键点 → EAR → 状态机 → 结果与确认事件"""

import logging
import time
from typing import Callable, Optional, Tuple

from analyzers.events import EventHook
from config.analyzer_config import AnalyzerConfig
from detectors.base_detector import run_detection_async
from evaluators.gesture_state_machine import GestureStateMachine, GestureStep
from evaluators.severity import closed_eye_reason, drowsiness_severity
from features.landmark_features import average_eye_aspect_ratio, has_landmarks
from models.data_models import DrowsinessEvent, DrowsinessResult, FaceLandmarksResult, GesturePhase
from models.landmark_topology import LEFT_EYE_INDICES, RIGHT_EYE_INDICES

logger = logging.getLogger(__name__)


class DrowsinessAnalyzer:
    """
    基于眼睛纵横比 (EAR) 的疲劳检测。

    平均 EAR 连续 consecutive_frame_threshold 帧低于 ear_threshold 时确认疲劳，
    并在确认的那一帧向 drowsiness_detected 的订阅者发送 DrowsinessEvent。
    同一实例的 analyze 调用须串行执行。
    """

    def __init__(
        self,
        face_detector,
        config: Optional[AnalyzerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if face_detector is None:
            raise ValueError("face_detector 不能为空")

        config = config or AnalyzerConfig()
        self._face_detector = face_detector
        self._state = GestureStateMachine(
            threshold=config.ear_threshold,
            confirm_frames=config.drowsiness_consec_frames,
            trigger_below=True,
            clock=clock,
            name="drowsiness",
        )
        self.eyes_closed_ear = config.eyes_closed_ear
        self.severity_ear_weight = config.severity_ear_weight
        self.severity_duration_weight = config.severity_duration_weight
        self.severity_duration_saturation = config.severity_duration_saturation
        self.drowsiness_detected = EventHook("drowsiness_detected")

    @property
    def ear_threshold(self) -> float:
        return self._state.threshold

    @ear_threshold.setter
    def ear_threshold(self, value: float):
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

    def subscribe(self, handler: Callable[[DrowsinessEvent], None]) -> None:
        self.drowsiness_detected.subscribe(handler)

    def unsubscribe(self, handler: Callable[[DrowsinessEvent], None]) -> None:
        self.drowsiness_detected.unsubscribe(handler)

    def apply_config(self, config: AnalyzerConfig):
        """更新阈值并重置状态"""
        self.ear_threshold = config.ear_threshold
        self.consecutive_frame_threshold = config.drowsiness_consec_frames
        self.eyes_closed_ear = config.eyes_closed_ear
        self.severity_ear_weight = config.severity_ear_weight
        self.severity_duration_weight = config.severity_duration_weight
        self.severity_duration_saturation = config.severity_duration_saturation
        self.reset()

    def reset(self):
        self._state.reset()

    def analyze(self, image_data: bytes) -> DrowsinessResult:
        """
        分析一帧图像的疲劳状态。

        Args:
            image_data: 编码后的图像字节

        Returns:
            DrowsinessResult；检测器异常按未检测到人脸处理，不会抛出
        """
        try:
            face_result = self._face_detector.detect(image_data)
            features = self._extract_features(face_result)
        except Exception:
            logger.warning("疲劳分析出错，按未检测到人脸处理", exc_info=True)
            features = None
        return self._update(features)

    async def analyze_async(self, image_data: bytes) -> DrowsinessResult:
        """analyze() 的异步版本，等待检测器期间不修改状态"""
        try:
            face_result = await run_detection_async(self._face_detector, image_data)
            features = self._extract_features(face_result)
        except Exception:
            logger.warning("疲劳分析出错，按未检测到人脸处理", exc_info=True)
            features = None
        return self._update(features)

    @staticmethod
    def _extract_features(face_result: FaceLandmarksResult) -> Optional[Tuple[float, float, float]]:
        """
        取第一张人脸计算 EAR；未检测到人脸或关键点为空时返回 None。

        关键点不足以覆盖某只眼睛时，该眼 EAR 记为 0，照常送入状态机。
        """
        if face_result is None or not face_result.is_detected or not face_result.faces:
            return None

        face = face_result.faces[0]
        if not face:
            return None
        if not has_landmarks(face, LEFT_EYE_INDICES) or not has_landmarks(face, RIGHT_EYE_INDICES):
            logger.debug("人脸关键点数量不足: %d，缺失的眼睛 EAR 记为 0", len(face))

        return average_eye_aspect_ratio(face, LEFT_EYE_INDICES, RIGHT_EYE_INDICES)

    def _update(self, features: Optional[Tuple[float, float, float]]) -> DrowsinessResult:
        if features is None:
            self._state.reset()
            return DrowsinessResult()

        left_ear, right_ear, average_ear = features
        step = self._state.update(average_ear)

        result = DrowsinessResult(
            is_drowsy=step.is_confirmed,
            left_ear=left_ear,
            right_ear=right_ear,
            average_ear=average_ear,
            consecutive_frames=step.frame_count,
            duration=step.duration,
        )

        if step.just_confirmed:
            self._emit(result, step)

        return result

    def _emit(self, result: DrowsinessResult, step: GestureStep):
        eyes_closed, reason = closed_eye_reason(result.average_ear, self.eyes_closed_ear)
        event = DrowsinessEvent(
            ear=result.average_ear,
            left_ear=result.left_ear,
            right_ear=result.right_ear,
            consecutive_frames=step.frame_count,
            duration=step.duration,
            severity=drowsiness_severity(
                result.average_ear,
                step.duration,
                self.ear_threshold,
                ear_weight=self.severity_ear_weight,
                duration_weight=self.severity_duration_weight,
                duration_saturation=self.severity_duration_saturation,
            ),
            eyes_closed=eyes_closed,
            reason=reason,
        )
        logger.warning("检测到疲劳: EAR=%.3f, 连续帧=%d", result.average_ear, step.frame_count)
        self.drowsiness_detected.emit(event)
