# src/retro_sid_player/arch/mos6502/cpu.py
"""
MOS 6502 CPUエミュレーションの中心モジュール。

1ステップ = 1命令。フェッチでPCを1進め、オペランドの消費はアドレッシングモード解決器が
実行フェーズの中で行います。
"""
import logging
from typing import List

from retro_sid_player.common.types import DisassemblyLine
from retro_sid_player.core.cpu import AbstractCpu
from retro_sid_player.core.snapshot import Operation
from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.state import Mos6502CpuState
from retro_sid_player.arch.mos6502.instructions import (
    AddressingModeResolver, DecodedInstruction, IllegalInstruction, decode_opcode, execute_instruction,
)
from retro_sid_player.arch.mos6502.instructions.base import OPERAND_LENGTH
from retro_sid_player.arch.mos6502 import disassembler

logger = logging.getLogger(__name__)

RESET_VECTOR = 0xFFFC


# @intent:responsibility MOS 6502 CPUの具体的なエミュレーションロジックを提供する。
class Mos6502Cpu(AbstractCpu):
    """
    MOS 6502 CPUをエミュレートするクラス。
    状態オブジェクトは可変で、命令関数はそれを直接更新します。
    """
    def __init__(self, bus: AddressSpace):
        super().__init__(bus)
        self._ops = AddressingModeResolver(self._state, bus)
        self._illegal_opcode_count = 0

    # @intent:responsibility MOS 6502の初期状態 (A=X=Y=0, P=0, SP=0xFF, PC=0) を生成する。
    def _create_initial_state(self) -> Mos6502CpuState:
        return Mos6502CpuState()

    def get_state(self) -> Mos6502CpuState:
        return self._state

    # @intent:responsibility これまでに実行した未定義オペコードの数。
    @property
    def illegal_opcode_count(self) -> int:
        return self._illegal_opcode_count

    # @intent:responsibility リセット処理。PCはリセットベクタ ($FFFC/$FFFD) から読み込む。
    def reset(self) -> None:
        super().reset()
        self._state.pc = self._bus.read_word(RESET_VECTOR)
        self._ops.bind(self._state)

    # @intent:responsibility 命令フェッチ。オペコードを読み、PCを1進める。
    def _fetch(self) -> int:
        state = self._state
        opcode = self._bus.read(state.pc)
        state.pc = (state.pc + 1) & 0xFFFF
        return opcode

    # @intent:responsibility 命令デコード
    def _decode(self, opcode: int) -> DecodedInstruction:
        return decode_opcode(opcode)

    # @intent:responsibility 命令実行。サイクルカウンタはデコードのたびに0から数え直す。
    def _execute(self, decoded: DecodedInstruction) -> Operation:
        state = self._state
        ops = self._ops
        ops.reset_cycles()

        opcode_addr = (state.pc - 1) & 0xFFFF
        operand_len = OPERAND_LENGTH[decoded.mode]
        illegal = isinstance(decoded, IllegalInstruction)
        if illegal:
            operand_len = 0
            self._illegal_opcode_count += 1
            logger.debug("Illegal opcode $%02X at $%04X executed as NOP.", decoded.opcode, opcode_addr)
        operand_bytes = [self._bus.peek(state.pc + i) for i in range(operand_len)]

        execute_instruction(decoded, state, self._bus, ops)

        return Operation(
            opcode_hex=f"{decoded.opcode:02X}",
            mnemonic=decoded.mnemonic,
            mode=decoded.mode.value,
            operand_bytes=operand_bytes,
            cycle_count=ops.cycles,
            length=1 + operand_len,
            illegal=illegal,
        )

    # @intent:responsibility 指定範囲の逆アセンブル結果を返す。
    def disassemble(self, start_addr: int, length: int) -> List[DisassemblyLine]:
        return disassembler.disassemble(self._bus, start_addr, length)
