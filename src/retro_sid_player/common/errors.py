# src/retro_sid_player/common/errors.py
"""
プレイヤー全体で使用される例外型を定義するモジュール。
"""


# @intent:responsibility 本パッケージが送出する全エラーの基底クラス。
class SidPlayerError(Exception):
    """Base error for retro-sid-player."""
    pass


# @intent:responsibility 音楽ファイルのヘッダ/ペイロードが不正であることを表します。
# @intent:rationale ValueErrorも継承し、既存の「不正な値」ハンドリングと互換にします。
class FormatError(SidPlayerError, ValueError):
    """Truncated buffer, bad magic, or a program image that cannot be placed."""
    pass


# @intent:responsibility playアドレスが0のままで、IRQベクタからも導出できないことを表します。
class UnresolvedEntryPointError(SidPlayerError):
    """The play routine address could not be resolved."""
    pass


# @intent:responsibility エミュレートしたルーチンが命令数上限内に番兵アドレスへ戻らなかったことを表します。
class RunawayRoutineError(SidPlayerError, TimeoutError):
    """An emulated routine never returned to the sentinel address."""

    def __init__(self, entry_address: int, executed: int, pc: int):
        super().__init__(
            f"Routine at ${entry_address:04X} did not return after {executed} instructions "
            f"(PC=${pc:04X})."
        )
        self.entry_address = entry_address
        self.executed = executed
        self.pc = pc


class ConfigError(SidPlayerError, ValueError):
    """Malformed player configuration."""
    pass
