"""Flask Web 接口 - 上传单帧图像，返回疲劳 / 吸烟分析结果和事件日志"""

import datetime
import logging
import threading
from dataclasses import asdict
from enum import Enum

from flask import Flask, jsonify, request

from analyzers.drowsiness_analyzer import DrowsinessAnalyzer
from analyzers.smoking_analyzer import SmokingAnalyzer
from config.analyzer_config import AnalyzerConfig

logger = logging.getLogger(__name__)


def _to_json(record) -> dict:
    """dataclass → 可 JSON 序列化的字典"""
    data = asdict(record)
    for key, value in data.items():
        if isinstance(value, Enum):
            data[key] = value.value
        elif isinstance(value, datetime.datetime):
            data[key] = value.isoformat()
        elif isinstance(value, float):
            data[key] = round(value, 4)
    return data


class WebDetectionSystem:
    """Web 版检测系统，串行处理上传的帧并记录确认事件。"""

    MAX_LOG_ENTRIES = 200

    def __init__(self, drowsiness_analyzer, smoking_analyzer, config: AnalyzerConfig):
        self.config = config
        self.drowsiness_analyzer = drowsiness_analyzer
        self.smoking_analyzer = smoking_analyzer
        # 正在分析时直接丢弃新帧
        self._busy = threading.Lock()
        self._logs = []
        # 单调递增的日志序号，裁剪旧日志后仍可按 since 续读
        self._log_seq = 0
        self._log_lock = threading.Lock()
        self.drowsiness_analyzer.subscribe(self._on_drowsiness)
        self.smoking_analyzer.subscribe(self._on_smoking)

    def _on_drowsiness(self, event):
        self._add_log("danger", "drowsiness", str(event), _to_json(event))

    def _on_smoking(self, event):
        self._add_log("danger", "smoking", str(event), _to_json(event))

    def _add_log(self, level, kind, message, payload=None):
        """添加一条日志。level: info / warning / danger"""
        entry = {
            "time": datetime.datetime.now().strftime("%H:%M:%S"),
            "level": level,
            "type": kind,
            "message": message,
            "data": payload or {},
        }
        with self._log_lock:
            entry["id"] = self._log_seq
            self._log_seq += 1
            self._logs.append(entry)
            if len(self._logs) > self.MAX_LOG_ENTRIES:
                self._logs = self._logs[-self.MAX_LOG_ENTRIES:]

    def get_logs(self, since=0):
        """
        获取序号不小于 since 的日志。

        Returns:
            (日志列表, 下一条日志的序号)；客户端以后者作为下次的 since
        """
        with self._log_lock:
            return [entry for entry in self._logs if entry["id"] >= since], self._log_seq

    def analyze(self, image_data: bytes):
        """分析一帧；上一帧仍在处理时返回 None。"""
        if not self._busy.acquire(blocking=False):
            return None
        try:
            drowsiness = self.drowsiness_analyzer.analyze(image_data)
            smoking = self.smoking_analyzer.analyze(image_data)
        finally:
            self._busy.release()
        return {"drowsiness": _to_json(drowsiness), "smoking": _to_json(smoking)}

    def update_config(self, data: dict):
        """动态更新阈值配置并重置状态。"""
        with self._busy:
            self.config = self.config.with_overrides(data)
            self.drowsiness_analyzer.apply_config(self.config)
            self.smoking_analyzer.apply_config(self.config)
        self._add_log("info", "config", "配置已更新")

    def reset(self):
        with self._busy:
            self.drowsiness_analyzer.reset()
            self.smoking_analyzer.reset()
        self._add_log("info", "reset", "状态已重置")


def _build_default_analyzers(config: AnalyzerConfig):
    """使用 MediaPipe 检测器构建默认分析器。"""
    from detectors.base_detector import DetectorOptions
    from detectors.face_detector import MediaPipeFaceDetector
    from detectors.hand_detector import MediaPipeHandDetector

    face_detector = MediaPipeFaceDetector()
    face_detector.initialize(DetectorOptions(max_num_results=1))
    hand_detector = MediaPipeHandDetector()
    hand_detector.initialize(DetectorOptions(max_num_results=2))
    return (
        DrowsinessAnalyzer(face_detector, config),
        SmokingAnalyzer(face_detector, hand_detector, config),
    )


def create_app(drowsiness_analyzer=None, smoking_analyzer=None, config=None) -> Flask:
    """创建 Flask 应用；未传入分析器时使用 MediaPipe 检测器。"""
    config = config or AnalyzerConfig()
    if drowsiness_analyzer is None or smoking_analyzer is None:
        default_drowsiness, default_smoking = _build_default_analyzers(config)
        drowsiness_analyzer = drowsiness_analyzer or default_drowsiness
        smoking_analyzer = smoking_analyzer or default_smoking

    app = Flask(__name__)
    system = WebDetectionSystem(drowsiness_analyzer, smoking_analyzer, config)
    app.config["DETECTION_SYSTEM"] = system

    @app.route("/api/analyze", methods=["POST"])
    def api_analyze():
        image_data = request.get_data()
        if not image_data:
            return jsonify({"success": False, "message": "请求体为空"}), 400
        result = system.analyze(image_data)
        if result is None:
            return jsonify({"success": False, "message": "上一帧仍在处理"}), 429
        return jsonify({"success": True, **result})

    @app.route("/api/events")
    def api_events():
        since = request.args.get("since", 0, type=int)
        logs, total = system.get_logs(since)
        return jsonify({"logs": logs, "total": total})

    @app.route("/api/config", methods=["GET"])
    def api_get_config():
        return jsonify(system.config.to_dict())

    @app.route("/api/config", methods=["POST"])
    def api_config():
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            return jsonify({"success": False, "message": "配置格式错误"}), 400
        system.update_config(data)
        return jsonify({"success": True, "config": system.config.to_dict()})

    @app.route("/api/reset", methods=["POST"])
    def api_reset():
        system.reset()
        return jsonify({"success": True, "message": "状态已重置"})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(host="0.0.0.0", port=5000, debug=False, threaded=True)
