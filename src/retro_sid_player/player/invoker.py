# src/retro_sid_player/player/invoker.py
"""
サブルーチン呼び出しのエミュレーション。

エミュレートされたルーチンに番兵の戻りアドレスを積んでから実行し、
PCが $0000 に戻った時点を「ルーチンの終了」とみなします。
"""
import logging

from retro_sid_player.common.errors import RunawayRoutineError
from retro_sid_player.common.types import CallResult
from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.cpu import Mos6502Cpu
from retro_sid_player.arch.mos6502.instructions.base import push_word

logger = logging.getLogger(__name__)

SENTINEL_ADDRESS = 0x0000
SENTINEL_FRAME_SIZE = 2
RETURN_MNEMONICS = ("RTS", "RTI")


# @intent:responsibility 直前のRTS/RTIが番兵の戻りアドレスを取り出したかを判定します。
# RTSは2バイト、RTIは3バイト取り出すので、番兵を積んだ後のSPから2～3バイト上にあれば番兵フレームへの復帰です。
def _popped_sentinel_frame(frame_sp: int, sp: int) -> bool:
    return SENTINEL_FRAME_SIZE <= ((sp - frame_sp) & 0xFF) <= SENTINEL_FRAME_SIZE + 1


# @intent:responsibility init/playエントリポイントを「呼び出して戻るまで実行」します。
# @intent:rationale 番兵はJSRと同じ形式 (戻り先 - 1 = $FFFF) で積むため、標準のRTSでちょうど$0000に着地します。
#                  RTIはステータスも1バイト余分に取り出すため同じフレームでは$0000に着地しません。
#                  RTS/RTIが番兵フレームを越えてスタックを取り出した時点でPCを$0000に揃えて終了します。
#                  エミュレートされたコードが正当に$0000へジャンプした場合もそこで終了します（ファイル形式の規約）。
class SubroutineInvoker:
    """
    max_instructions は1回の呼び出しで実行できる命令数の上限です。0なら上限なし。
    """
    def __init__(self, cpu: Mos6502Cpu, bus: AddressSpace, max_instructions: int = 1_000_000):
        if max_instructions < 0:
            raise ValueError(f"max_instructions must be >= 0, got {max_instructions}.")
        self._cpu = cpu
        self._bus = bus
        self._max_instructions = max_instructions

    @property
    def max_instructions(self) -> int:
        return self._max_instructions

    # @intent:responsibility レジスタを初期化し、番兵を積んで entry_address から実行します。
    # @intent:post-condition 正常終了時、PCは$0000、戻り値は実行した命令数とサイクル数です。
    def call_and_run(self, entry_address: int, accumulator_seed: int = 0) -> CallResult:
        entry_address &= 0xFFFF
        cpu = self._cpu
        state = cpu.get_state()
        state.clear_registers(accumulator_seed)
        state.pc = entry_address
        push_word(state, self._bus, (SENTINEL_ADDRESS - 1) & 0xFFFF)
        frame_sp = state.sp

        limit = self._max_instructions
        executed = 0
        cycles = 0
        while state.pc != SENTINEL_ADDRESS:
            if limit and executed >= limit:
                logger.warning(
                    "Routine at $%04X exceeded %d instructions (PC=$%04X).", entry_address, limit, state.pc
                )
                raise RunawayRoutineError(entry_address, executed, state.pc)
            snapshot = cpu.step()
            cycles += snapshot.operation.cycle_count
            executed += 1
            if snapshot.operation.mnemonic in RETURN_MNEMONICS and _popped_sentinel_frame(frame_sp, state.sp):
                state.pc = SENTINEL_ADDRESS

        return CallResult(entry_address, executed, cycles)
