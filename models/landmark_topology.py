"""关键点拓扑常量：下标 → 语义位置（MediaPipe FaceMesh 468 点 / Hands 21 点）"""

from models.data_models import HandLandmarkType

# 眼睛 6 点顺序: 外眼角, 上眼睑1, 上眼睑2, 内眼角, 下眼睑1, 下眼睑2
LEFT_EYE_INDICES = (33, 160, 158, 133, 153, 144)
RIGHT_EYE_INDICES = (362, 385, 387, 263, 373, 380)

FACE_INDICES = {
    "upper_lip_center": 13,
    "lower_lip_center": 14,
}

# 吸烟特征使用的嘴部中心点
MOUTH_CENTER_INDEX = FACE_INDICES["upper_lip_center"]

INDEX_FINGER_TIP = int(HandLandmarkType.INDEX_FINGER_TIP)
MIDDLE_FINGER_TIP = int(HandLandmarkType.MIDDLE_FINGER_TIP)

FACE_MESH_LANDMARK_COUNT = 468
HAND_LANDMARK_COUNT = 21
