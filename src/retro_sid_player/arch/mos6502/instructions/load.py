# src/retro_sid_player/arch/mos6502/instructions/load.py
"""
MOS 6502 転送系命令 (Load/Store/Transfer)。
"""
from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.state import Mos6502CpuState
from retro_sid_player.arch.mos6502.instructions.base import AddressingMode, AddressingModeResolver

# --- LDA / LDX / LDY ---
# @intent:responsibility メモリからレジスタへロードし、N, Zフラグを更新。

def lda(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    state.a = ops.fetch_operand(mode)
    state.update_nz(state.a)

def ldx(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    state.x = ops.fetch_operand(mode)
    state.update_nz(state.x)

def ldy(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    state.y = ops.fetch_operand(mode)
    state.update_nz(state.y)

# --- STA / STX / STY ---
# @intent:responsibility レジスタの内容をメモリへストア。フラグ変化なし。事前の読み出しは行わない。

def sta(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.store_fresh(mode, state.a)

def stx(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.store_fresh(mode, state.x)

def sty(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.store_fresh(mode, state.y)

# --- Register Transfers (TAX, TAY, TXA, TYA, TSX, TXS) ---

def tax(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.x = state.a
    state.update_nz(state.x)

def tay(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.y = state.a
    state.update_nz(state.y)

def txa(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.a = state.x
    state.update_nz(state.a)

def tya(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.a = state.y
    state.update_nz(state.a)

# @intent:note TSXはSP(8bit)からXへ転送。N, Z更新あり。
def tsx(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.x = state.sp
    state.update_nz(state.x)

# @intent:note TXSはN, Zフラグを更新 *しない*。
def txs(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.sp = state.x
