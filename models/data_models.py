"""核心数据模型定义"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import List


class HandType(Enum):
    """手部左右类别"""
    UNKNOWN = "Unknown"
    LEFT = "Left"
    RIGHT = "Right"


class HandLandmarkType(IntEnum):
    """MediaPipe 手部 21 个关键点"""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_FINGER_MCP = 5
    INDEX_FINGER_PIP = 6
    INDEX_FINGER_DIP = 7
    INDEX_FINGER_TIP = 8
    MIDDLE_FINGER_MCP = 9
    MIDDLE_FINGER_PIP = 10
    MIDDLE_FINGER_DIP = 11
    MIDDLE_FINGER_TIP = 12
    RING_FINGER_MCP = 13
    RING_FINGER_PIP = 14
    RING_FINGER_DIP = 15
    RING_FINGER_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


class SmokingGestureType(Enum):
    """吸烟手势类别"""
    UNKNOWN = "Unknown"
    CONFIRMED = "Confirmed"


class GesturePhase(Enum):
    """手势状态机所处阶段"""
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    CONFIRMED = "confirmed"


@dataclass
class Landmark:
    """归一化关键点，x/y 相对图像宽高，z 为深度（后端可能恒为 0）"""
    x: float
    y: float
    z: float = 0.0
    index: int = 0
    visibility: float = 1.0

    def distance_to(self, other: "Landmark") -> float:
        """三维欧氏距离"""
        return math.dist((self.x, self.y, self.z), (other.x, other.y, other.z))

    def distance_2d_to(self, other: "Landmark") -> float:
        """忽略 z 的二维欧氏距离"""
        return math.dist((self.x, self.y), (other.x, other.y))

    def __str__(self) -> str:
        return f"Landmark[{self.index}]: ({self.x:.3f}, {self.y:.3f}, {self.z:.3f})"


@dataclass
class FaceLandmarksResult:
    """人脸关键点检测器输出"""
    is_detected: bool = False
    faces: List[List[Landmark]] = field(default_factory=list)
    detection_confidence: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    processing_time_ms: float = 0.0


@dataclass
class HandLandmarksResult:
    """手部关键点检测器输出，handedness 与 hands 按下标对应"""
    is_detected: bool = False
    hands: List[List[Landmark]] = field(default_factory=list)
    handedness: List[HandType] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)
    processing_time_ms: float = 0.0


@dataclass
class DrowsinessResult:
    """单帧疲劳分析结果"""
    is_drowsy: bool = False
    left_ear: float = 0.0
    right_ear: float = 0.0
    average_ear: float = 0.0
    consecutive_frames: int = 0
    duration: float = 0.0


@dataclass
class SmokingResult:
    """单帧吸烟分析结果"""
    is_smoking_detected: bool = False
    hand_to_mouth_distance: float = 0.0
    detected_hand: HandType = HandType.UNKNOWN
    consecutive_frames: int = 0
    duration: float = 0.0


@dataclass(frozen=True)
class DrowsinessEvent:
    """疲劳确认事件，仅在确认边沿触发一次"""
    ear: float
    left_ear: float
    right_ear: float
    consecutive_frames: int
    duration: float
    severity: float
    eyes_closed: bool
    reason: str
    detected_at: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return (
            f"Drowsiness: EAR={self.ear:.3f}, Duration={self.duration:.1f}s, "
            f"Severity={self.severity:.2f}"
        )


@dataclass(frozen=True)
class SmokingEvent:
    """吸烟确认事件，仅在确认边沿触发一次"""
    hand_to_mouth_distance: float
    detected_hand: HandType
    consecutive_frames: int
    duration: float
    confidence: float
    gesture_type: SmokingGestureType = SmokingGestureType.CONFIRMED
    detected_at: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return (
            f"Smoking: {self.gesture_type.value}, Hand={self.detected_hand.value}, "
            f"Confidence={self.confidence:.2f}, Distance={self.hand_to_mouth_distance:.3f}"
        )


@dataclass
class FaceMeshResult:
    """人脸网格透传结果"""
    is_detected: bool = False
    landmarks: List[List[Landmark]] = field(default_factory=list)
    confidence: float = 0.0


@dataclass
class HandTrackingResult:
    """手部跟踪透传结果"""
    is_detected: bool = False
    hands: List[List[Landmark]] = field(default_factory=list)
    handedness: List[HandType] = field(default_factory=list)
