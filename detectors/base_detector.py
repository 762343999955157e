"""关键点检测器基类：初始化状态、计时、异步调用"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class DetectorOptions:
    """检测器参数"""
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    max_num_results: int = 1


class LandmarkDetectorBase:
    """
    关键点检测器基类。

    子类实现 _initialize_detector() 和 _perform_detection()，
    返回 FaceLandmarksResult 或 HandLandmarksResult。
    """

    detector_name = "Landmark Detector"

    def __init__(self):
        self.options: Optional[DetectorOptions] = None
        self._is_initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    def initialize(self, options: Optional[DetectorOptions] = None):
        """加载模型，重复调用会先释放已有资源"""
        if self._is_initialized:
            self.close()
        self.options = options or DetectorOptions()
        self._initialize_detector()
        self._is_initialized = True
        logger.info("%s 已初始化", self.detector_name)

    def detect(self, image_data: bytes):
        """
        检测单帧图像中的关键点。

        Args:
            image_data: 编码后的图像字节（JPEG/PNG）

        Raises:
            RuntimeError: 检测器尚未初始化
        """
        if not self._is_initialized:
            raise RuntimeError(f"{self.detector_name} 尚未初始化")

        start = time.perf_counter()
        result = self._perform_detection(image_data)
        result.processing_time_ms = (time.perf_counter() - start) * 1000.0
        result.timestamp = datetime.now()
        return result

    async def detect_async(self, image_data: bytes):
        """在工作线程中执行 detect()，不设超时"""
        return await asyncio.to_thread(self.detect, image_data)

    def close(self):
        """释放检测器资源"""
        if self._is_initialized:
            self._release_detector()
            logger.info("%s 已释放", self.detector_name)
        self._is_initialized = False

    def __enter__(self):
        if not self._is_initialized:
            self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _initialize_detector(self):
        raise NotImplementedError

    def _perform_detection(self, image_data: bytes):
        raise NotImplementedError

    def _release_detector(self):
        pass


async def run_detection_async(detector, image_data: bytes):
    """调用检测器的 detect_async()；仅实现 detect() 的检测器放到工作线程执行"""
    detect_async = getattr(detector, "detect_async", None)
    if detect_async is not None:
        return await detect_async(image_data)
    return await asyncio.to_thread(detector.detect, image_data)
