"""确认事件的严重度与置信度计算"""

from typing import Tuple

DEFAULT_EYES_CLOSED_EAR = 0.15


def drowsiness_severity(
    ear: float,
    duration: float,
    ear_threshold: float,
    ear_weight: float = 0.5,
    duration_weight: float = 0.5,
    duration_saturation: float = 10.0,
) -> float:
    """
    疲劳严重度，范围 0~1。

    EAR 低于阈值的比例贡献至多 ear_weight，持续时间线性增长至
    duration_saturation 秒时贡献 duration_weight，总和封顶 1.0。
    """
    ear_score = 0.0
    if ear_threshold > 0:
        ear_score = max(0.0, (ear_threshold - ear) / ear_threshold) * ear_weight

    duration_score = 0.0
    if duration_saturation > 0:
        duration_score = min(duration_weight, duration / duration_saturation * duration_weight)

    return min(1.0, ear_score + duration_score)


def smoking_confidence(distance: float, threshold: float) -> float:
    """手越靠近嘴部置信度越高，范围 0~1"""
    if threshold <= 0:
        return 0.0
    return min(1.0, max(0.0, 1.0 - distance / threshold))


def closed_eye_reason(ear: float, closed_level: float = DEFAULT_EYES_CLOSED_EAR) -> Tuple[bool, str]:
    """返回 (是否完全闭眼, 原因描述)"""
    if ear < closed_level:
        return True, "Eyes closed"
    return False, "Low eye aspect ratio"
