"""疲劳 / 吸烟检测系统入口文件：读取摄像头或视频，逐帧送入分析器"""

import argparse
import logging
import sys

import cv2

from analyzers.drowsiness_analyzer import DrowsinessAnalyzer
from analyzers.smoking_analyzer import SmokingAnalyzer
from config.analyzer_config import load_config
from detectors.base_detector import DetectorOptions
from detectors.face_detector import MediaPipeFaceDetector
from detectors.hand_detector import MediaPipeHandDetector

logger = logging.getLogger(__name__)


class DetectionSystem:
    """协调检测器与分析器，管理视频流主循环。"""

    def __init__(self, config_path=None, max_hands: int = 2):
        self._cap = None
        self.config = load_config(config_path)

        self.face_detector = MediaPipeFaceDetector()
        self.face_detector.initialize(DetectorOptions(max_num_results=1))
        self.hand_detector = MediaPipeHandDetector()
        self.hand_detector.initialize(DetectorOptions(max_num_results=max_hands))

        self.drowsiness_analyzer = DrowsinessAnalyzer(self.face_detector, self.config)
        self.smoking_analyzer = SmokingAnalyzer(self.face_detector, self.hand_detector, self.config)
        self.drowsiness_analyzer.subscribe(self._on_event)
        self.smoking_analyzer.subscribe(self._on_event)

        self.events = []

    def _on_event(self, event):
        self.events.append(event)
        logger.warning("⚠️ %s", event)

    def process_frame(self, frame):
        """将一帧 BGR 图像编码为 JPEG 后送入两个分析器。"""
        ok, jpeg = cv2.imencode(".jpg", frame)
        if not ok:
            logger.warning("帧编码失败，跳过")
            return None, None
        image_data = jpeg.tobytes()
        return (
            self.drowsiness_analyzer.analyze(image_data),
            self.smoking_analyzer.analyze(image_data),
        )

    def run(self, source=0, max_frames=None):
        """启动主检测循环。"""
        self._cap = cv2.VideoCapture(source)

        if not self._cap.isOpened():
            logger.error("无法打开视频源: %s", source)
            sys.exit(1)

        try:
            self._main_loop(max_frames)
        finally:
            self.stop()

    def _main_loop(self, max_frames=None):
        """视频流处理主循环，视频读完或达到帧数上限时退出。"""
        frame_index = 0
        while max_frames is None or frame_index < max_frames:
            ret, frame = self._cap.read()
            if not ret:
                break

            drowsiness, smoking = self.process_frame(frame)
            if drowsiness is not None:
                logger.debug(
                    "帧 %d: EAR=%.3f 疲劳=%s | 距离=%.3f 吸烟=%s",
                    frame_index, drowsiness.average_ear, drowsiness.is_drowsy,
                    smoking.hand_to_mouth_distance, smoking.is_smoking_detected,
                )
            frame_index += 1

        logger.info("共处理 %d 帧，触发 %d 个事件", frame_index, len(self.events))

    def stop(self):
        """释放视频源和检测器。"""
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        self._cap = None
        self.face_detector.close()
        self.hand_detector.close()


def parse_source(value: str):
    """纯数字视为摄像头编号，否则视为视频文件路径"""
    return int(value) if value.isdigit() else value


def main(argv=None):
    parser = argparse.ArgumentParser(description="疲劳 / 吸烟手势检测")
    parser.add_argument("--source", type=str, default="0", help="摄像头编号或视频文件路径")
    parser.add_argument("--config", type=str, default=None, help="JSON 阈值配置文件路径")
    parser.add_argument("--max-frames", type=int, default=None, help="最多处理的帧数")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="日志级别",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    system = DetectionSystem(config_path=args.config)
    system.run(source=parse_source(args.source), max_frames=args.max_frames)


if __name__ == "__main__":
    main()
