"""关键点透传分析器：只返回人脸网格 / 手部关键点，不做状态判断"""

import logging

from detectors.base_detector import run_detection_async
from models.data_models import FaceMeshResult, HandTrackingResult

logger = logging.getLogger(__name__)


class FaceMeshAnalyzer:
    """返回人脸网格关键点"""

    def __init__(self, face_detector):
        if face_detector is None:
            raise ValueError("face_detector 不能为空")
        self._face_detector = face_detector

    def analyze(self, image_data: bytes) -> FaceMeshResult:
        try:
            return self._to_result(self._face_detector.detect(image_data))
        except Exception:
            logger.warning("人脸网格分析出错", exc_info=True)
            return FaceMeshResult()

    async def analyze_async(self, image_data: bytes) -> FaceMeshResult:
        try:
            return self._to_result(await run_detection_async(self._face_detector, image_data))
        except Exception:
            logger.warning("人脸网格分析出错", exc_info=True)
            return FaceMeshResult()

    @staticmethod
    def _to_result(face_result) -> FaceMeshResult:
        if not face_result.is_detected or not face_result.faces:
            return FaceMeshResult()
        return FaceMeshResult(
            is_detected=True,
            landmarks=face_result.faces,
            confidence=face_result.detection_confidence,
        )


class HandTrackingAnalyzer:
    """返回手部关键点及左右手"""

    def __init__(self, hand_detector):
        if hand_detector is None:
            raise ValueError("hand_detector 不能为空")
        self._hand_detector = hand_detector

    def analyze(self, image_data: bytes) -> HandTrackingResult:
        try:
            return self._to_result(self._hand_detector.detect(image_data))
        except Exception:
            logger.warning("手部跟踪出错", exc_info=True)
            return HandTrackingResult()

    async def analyze_async(self, image_data: bytes) -> HandTrackingResult:
        try:
            return self._to_result(await run_detection_async(self._hand_detector, image_data))
        except Exception:
            logger.warning("手部跟踪出错", exc_info=True)
            return HandTrackingResult()

    @staticmethod
    def _to_result(hand_result) -> HandTrackingResult:
        if not hand_result.is_detected:
            return HandTrackingResult()
        return HandTrackingResult(
            is_detected=True,
            hands=hand_result.hands,
            handedness=hand_result.handedness,
        )
