"""通用手势状态机：阈值 + 连续帧计数 + 持续时间，确认事件按边沿触发"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from models.data_models import GesturePhase

logger = logging.getLogger(__name__)


@dataclass
class GestureStep:
    """状态机单帧输出"""
    value: Optional[float]
    condition_met: bool
    frame_count: int
    duration: float
    is_confirmed: bool
    just_confirmed: bool


class GestureStateMachine:
    """
    Idle → Accumulating → Confirmed 三态状态机。

    每帧调用一次 update()。条件满足时计数递增，计数首次达到 confirm_frames
    的那一帧 just_confirmed 为 True，之后同一段连续运行内不再重复。
    未检测到目标或条件不满足时回到 Idle。
    """

    def __init__(
        self,
        threshold: float,
        confirm_frames: int,
        trigger_below: bool = True,
        clock: Callable[[], float] = time.monotonic,
        name: str = "gesture",
    ):
        self.threshold = threshold
        self.confirm_frames = confirm_frames
        self.trigger_below = trigger_below
        self.name = name
        self._clock = clock
        self._frame_count = 0
        self._episode_start = 0.0
        self._is_active = False

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def episode_start(self) -> Optional[float]:
        """当前连续运行的起始时刻，Idle 时为 None"""
        if self._frame_count == 0:
            return None
        return self._episode_start

    @property
    def phase(self) -> GesturePhase:
        if self._frame_count == 0:
            return GesturePhase.IDLE
        if self._is_active:
            return GesturePhase.CONFIRMED
        return GesturePhase.ACCUMULATING

    def is_triggered(self, value: Optional[float]) -> bool:
        """判断特征值是否满足触发条件，NaN 视为不满足"""
        if value is None:
            return False
        if self.trigger_below:
            return value < self.threshold
        return value > self.threshold

    def update(self, value: Optional[float], detected: bool = True) -> GestureStep:
        """
        输入一帧特征值，推进状态机。

        Args:
            value: 本帧特征值，None 表示无法计算
            detected: 上游是否检测到目标

        Returns:
            GestureStep 包含计数、持续时间和是否处于/刚进入确认状态
        """
        if not detected or not self.is_triggered(value):
            self.reset()
            return GestureStep(
                value=value, condition_met=False, frame_count=0,
                duration=0.0, is_confirmed=False, just_confirmed=False,
            )

        now = self._clock()
        if self._frame_count == 0:
            self._episode_start = now
        self._frame_count += 1

        just_confirmed = False
        if self._frame_count >= self.confirm_frames and not self._is_active:
            self._is_active = True
            just_confirmed = True

        return GestureStep(
            value=value,
            condition_met=True,
            frame_count=self._frame_count,
            duration=now - self._episode_start,
            is_confirmed=self._is_active,
            just_confirmed=just_confirmed,
        )

    def reset(self):
        """回到 Idle，清零计数"""
        if self._frame_count > 0:
            logger.debug("%s 状态机重置 (计数 %d)", self.name, self._frame_count)
        self._frame_count = 0
        self._episode_start = 0.0
        self._is_active = False
