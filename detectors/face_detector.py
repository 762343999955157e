"""人脸关键点检测模块，基于 MediaPipe FaceMesh"""

import logging
from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np

from detectors.base_detector import LandmarkDetectorBase
from models.data_models import FaceLandmarksResult, Landmark

logger = logging.getLogger(__name__)


def decode_image(image_data: bytes) -> Optional[np.ndarray]:
    """将 JPEG/PNG 字节解码为 RGB 图像，无法解码时返回 None"""
    if not image_data:
        return None
    buffer = np.frombuffer(image_data, dtype=np.uint8)
    frame = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if frame is None:
        return None
    # BGR -> RGB
    rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    rgb_frame.flags.writeable = False
    return rgb_frame


def _visibility(lm) -> float:
    """后端给出的 visibility；未设置时为 1.0，显式的 0.0 保留"""
    has_field = getattr(lm, "HasField", None)
    if has_field is not None:
        return float(lm.visibility) if has_field("visibility") else 1.0
    visibility = getattr(lm, "visibility", None)
    return float(visibility) if visibility is not None else 1.0


def to_landmarks(normalized_landmarks) -> List[Landmark]:
    """MediaPipe 归一化关键点 → Landmark 列表，下标即拓扑位置"""
    landmarks = []
    for i, lm in enumerate(normalized_landmarks):
        landmarks.append(Landmark(
            x=float(lm.x),
            y=float(lm.y),
            z=float(getattr(lm, "z", 0.0)),
            index=i,
            # FaceMesh / Hands 不输出 visibility
            visibility=_visibility(lm),
        ))
    return landmarks


class MediaPipeFaceDetector(LandmarkDetectorBase):
    """使用 MediaPipe FaceMesh 检测人脸关键点"""

    detector_name = "Face Landmarker"

    def __init__(self):
        super().__init__()
        self._face_mesh = None

    def _initialize_detector(self):
        """初始化 MediaPipe FaceMesh"""
        self._face_mesh = mp.solutions.face_mesh.FaceMesh(
            max_num_faces=self.options.max_num_results,
            min_detection_confidence=self.options.min_detection_confidence,
            min_tracking_confidence=self.options.min_tracking_confidence,
            refine_landmarks=False,
        )

    def _perform_detection(self, image_data: bytes) -> FaceLandmarksResult:
        """
        检测单帧图像中的人脸关键点。

        Args:
            image_data: 编码后的图像字节

        Returns:
            FaceLandmarksResult；图像无法解码或未检测到人脸时 is_detected 为 False
        """
        result = FaceLandmarksResult()

        rgb_frame = decode_image(image_data)
        if rgb_frame is None:
            logger.warning("无法解码图像 (%d 字节)", len(image_data or b""))
            return result

        results = self._face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return result

        for face in results.multi_face_landmarks:
            landmarks = to_landmarks(face.landmark)
            if landmarks:
                result.faces.append(landmarks)

        result.is_detected = len(result.faces) > 0
        # FaceMesh 不输出逐脸置信度，使用检测阈值作为下界
        result.detection_confidence = self.options.min_detection_confidence if result.is_detected else 0.0
        return result

    def _release_detector(self):
        """释放 MediaPipe 资源"""
        if self._face_mesh is not None:
            self._face_mesh.close()
            self._face_mesh = None
