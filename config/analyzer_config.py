"""分析器阈值配置：默认值 + JSON 配置文件覆盖"""

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from typing import Optional

logger = logging.getLogger(__name__)

# 默认阈值
_DEFAULTS = {
    "ear_threshold": 0.25,
    "drowsiness_consec_frames": 15,
    "hand_to_mouth_distance_threshold": 0.15,
    "smoking_consec_frames": 10,
    "eyes_closed_ear": 0.15,
    "severity_ear_weight": 0.5,
    "severity_duration_weight": 0.5,
    "severity_duration_saturation": 10.0,
}


@dataclass(frozen=True)
class AnalyzerConfig:
    """疲劳 / 吸烟分析器配置，数值范围不做校验"""
    ear_threshold: float = _DEFAULTS["ear_threshold"]
    drowsiness_consec_frames: int = _DEFAULTS["drowsiness_consec_frames"]
    hand_to_mouth_distance_threshold: float = _DEFAULTS["hand_to_mouth_distance_threshold"]
    smoking_consec_frames: int = _DEFAULTS["smoking_consec_frames"]
    eyes_closed_ear: float = _DEFAULTS["eyes_closed_ear"]
    severity_ear_weight: float = _DEFAULTS["severity_ear_weight"]
    severity_duration_weight: float = _DEFAULTS["severity_duration_weight"]
    severity_duration_saturation: float = _DEFAULTS["severity_duration_saturation"]

    @classmethod
    def from_dict(cls, data: dict) -> "AnalyzerConfig":
        """从字典构建配置，忽略未知字段和 None 值"""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        return cls(**values)

    def with_overrides(self, data: dict) -> "AnalyzerConfig":
        """返回覆盖部分字段后的新配置"""
        known = {f.name for f in fields(self)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        return replace(self, **values)

    def to_dict(self) -> dict:
        return asdict(self)


def load_config(config_path: Optional[str] = None) -> AnalyzerConfig:
    """从 JSON 配置文件加载阈值参数，缺失字段使用默认值。"""
    if config_path is None:
        return AnalyzerConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("配置文件不存在 %s，使用默认阈值", config_path)
        return AnalyzerConfig()
    except json.JSONDecodeError:
        logger.warning("配置文件格式错误 %s，使用默认阈值", config_path)
        return AnalyzerConfig()

    if not isinstance(data, dict):
        logger.warning("配置文件格式错误 %s，使用默认阈值", config_path)
        return AnalyzerConfig()

    return AnalyzerConfig.from_dict(data)
