# src/retro_sid_player/player/scheduler.py
"""
ティック駆動でplayルーチンを再入するスケジューラ。
"""
import logging
from enum import Enum
from typing import Optional

from retro_sid_player.common.errors import SidPlayerError, UnresolvedEntryPointError
from retro_sid_player.common.types import CallResult
from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.player.invoker import SubroutineInvoker

logger = logging.getLogger(__name__)

# 周期割り込み (IRQ) ベクタの慣習的な位置
IRQ_VECTOR_ADDRESS = 0x0314


# @intent:responsibility 再生状態を定義します。
class PlaybackState(Enum):
    STOPPED = "STOPPED"
    PLAYING = "PLAYING"


# @intent:responsibility ティックを受け取り、処理ループからの pump() でplayルーチンを実行します。
# @intent:rationale ティックフラグはカウンタではなく単一のboolです。pump() 前に届いた複数のティックは
#                  1回にまとめられ（取りこぼし）、キューには積まれません。
class PlaybackScheduler:
    def __init__(self, invoker: SubroutineInvoker, bus: AddressSpace):
        self._invoker = invoker
        self._bus = bus
        self._tick_pending = False
        self._state = PlaybackState.STOPPED
        self._loaded = False
        self._play_address = 0
        self.last_result: Optional[CallResult] = None

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def tick_pending(self) -> bool:
        return self._tick_pending

    @property
    def play_address(self) -> int:
        return self._play_address

    # @intent:responsibility ファイルのロード完了を通知し、playアドレスを設定します。0なら初回実行時に解決します。
    def arm(self, play_address: int) -> None:
        self._play_address = play_address & 0xFFFF
        self._loaded = True

    # @intent:responsibility ロード済み状態を解除します（再ロードの直前など）。
    def disarm(self) -> None:
        self._loaded = False
        self._play_address = 0

    @property
    def is_armed(self) -> bool:
        return self._loaded

    # @intent:responsibility 再生/停止を切り替えます。ロード前でも要求自体は受け付けます。
    def set_playing(self, playing: bool) -> None:
        self._state = PlaybackState.PLAYING if playing else PlaybackState.STOPPED

    # @intent:responsibility 外部タイマから呼ばれます。フラグを立てるだけで、インタプリタには触れません。
    def on_tick(self) -> None:
        self._tick_pending = True

    # @intent:responsibility 保留中のティックを消費し、再生中かつロード済みならplayルーチンを1回実行します。
    # @intent:post-condition playルーチンを実行した場合にTrueを返します。
    def pump(self) -> bool:
        if not self._tick_pending:
            return False
        self._tick_pending = False
        if self._state != PlaybackState.PLAYING or not self._loaded:
            return False

        try:
            play_address = self._resolve_play_address()
            self.last_result = self._invoker.call_and_run(play_address, 0)
        except SidPlayerError:
            self._state = PlaybackState.STOPPED
            raise
        return True

    # @intent:responsibility playアドレスが0の場合、IRQベクタ ($0314/$0315) から一度だけ導出します。
    def _resolve_play_address(self) -> int:
        if self._play_address == 0:
            vector = self._bus.peek(IRQ_VECTOR_ADDRESS) | (self._bus.peek(IRQ_VECTOR_ADDRESS + 1) << 8)
            if vector == 0:
                raise UnresolvedEntryPointError(
                    f"Play address is zero and the IRQ vector at ${IRQ_VECTOR_ADDRESS:04X} is unset."
                )
            logger.debug("Play address resolved from IRQ vector: $%04X", vector)
            self._play_address = vector
        return self._play_address
