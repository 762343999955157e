"""几何特征提取模块：由归一化关键点计算 EAR 和手-嘴距离，无状态"""

import math
from typing import Optional, Sequence, Tuple

from models.data_models import HandType, Landmark
from models.landmark_topology import (
    INDEX_FINGER_TIP,
    LEFT_EYE_INDICES,
    MIDDLE_FINGER_TIP,
    MOUTH_CENTER_INDEX,
    RIGHT_EYE_INDICES,
)

# 眼角水平距离低于该值时 EAR 记为 0
MIN_HORIZONTAL_DISTANCE = 1e-4


def has_landmarks(landmarks: Sequence[Landmark], indices: Sequence[int]) -> bool:
    """关键点序列是否覆盖所有给定下标"""
    return len(indices) > 0 and len(landmarks) > max(indices)


def landmark_at(landmarks: Sequence[Landmark], index: int) -> Optional[Landmark]:
    """按下标取关键点，越界返回 None"""
    if 0 <= index < len(landmarks):
        return landmarks[index]
    return None


def eye_aspect_ratio(landmarks: Sequence[Landmark], eye_indices: Sequence[int]) -> float:
    """
    计算单只眼睛的 EAR 值。

    公式: EAR = (|p2-p6| + |p3-p5|) / (2 * |p1-p4|)

    Args:
        landmarks: 一张人脸的全部关键点
        eye_indices: 6 个下标，顺序为 眼角, 上1, 上2, 眼角, 下1, 下2

    Returns:
        EAR 值；关键点不足或眼角距离过小时返回 0.0
    """
    if not has_landmarks(landmarks, eye_indices):
        return 0.0

    p1, p2, p3, p4, p5, p6 = (landmarks[i] for i in eye_indices)

    vertical_1 = p2.distance_to(p6)
    vertical_2 = p3.distance_to(p5)
    horizontal = p1.distance_to(p4)

    if horizontal < MIN_HORIZONTAL_DISTANCE:
        return 0.0

    return (vertical_1 + vertical_2) / (2.0 * horizontal)


def average_eye_aspect_ratio(
    landmarks: Sequence[Landmark],
    left_indices: Sequence[int] = LEFT_EYE_INDICES,
    right_indices: Sequence[int] = RIGHT_EYE_INDICES,
) -> Tuple[float, float, float]:
    """返回 (左眼 EAR, 右眼 EAR, 平均 EAR)"""
    left_ear = eye_aspect_ratio(landmarks, left_indices)
    right_ear = eye_aspect_ratio(landmarks, right_indices)
    return left_ear, right_ear, (left_ear + right_ear) / 2.0


def hand_to_mouth_distance(
    hand_landmarks: Sequence[Landmark],
    face_landmarks: Sequence[Landmark],
) -> Optional[float]:
    """
    计算食指尖与中指尖的中点到嘴部中心点的三维距离。

    Returns:
        距离值；指尖或嘴部关键点缺失时返回 None
    """
    index_tip = landmark_at(hand_landmarks, INDEX_FINGER_TIP)
    middle_tip = landmark_at(hand_landmarks, MIDDLE_FINGER_TIP)
    mouth = landmark_at(face_landmarks, MOUTH_CENTER_INDEX)

    if index_tip is None or middle_tip is None or mouth is None:
        return None

    midpoint = (
        (index_tip.x + middle_tip.x) / 2.0,
        (index_tip.y + middle_tip.y) / 2.0,
        (index_tip.z + middle_tip.z) / 2.0,
    )
    return math.dist(midpoint, (mouth.x, mouth.y, mouth.z))


def closest_hand_to_mouth(
    hands: Sequence[Sequence[Landmark]],
    handedness: Sequence[HandType],
    face_landmarks: Sequence[Landmark],
) -> Tuple[float, HandType]:
    """
    在所有检测到的手中取距离嘴部最近的一只。

    Returns:
        (最小距离, 对应手的左右类别)；没有可用的手时返回 (inf, UNKNOWN)
    """
    min_distance = math.inf
    detected_hand = HandType.UNKNOWN

    for i, hand in enumerate(hands):
        distance = hand_to_mouth_distance(hand, face_landmarks)
        if distance is None or distance >= min_distance:
            continue
        min_distance = distance
        detected_hand = handedness[i] if i < len(handedness) else HandType.UNKNOWN

    return min_distance, detected_hand
