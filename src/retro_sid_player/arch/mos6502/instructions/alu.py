# src/retro_sid_player/arch/mos6502/instructions/alu.py
"""
MOS 6502 算術論理演算命令 (ALU)。

ADC/SBCはバイナリモードのみ。Dフラグは保持されるが演算には影響しない。
"""
from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.state import Mos6502CpuState
from retro_sid_player.arch.mos6502.instructions.base import AddressingMode, AddressingModeResolver

# --- Logical Operations (AND, ORA, EOR, BIT) ---

def and_(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    state.a &= ops.fetch_operand(mode)
    state.update_nz(state.a)

def ora(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    state.a |= ops.fetch_operand(mode)
    state.update_nz(state.a)

def eor(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    state.a ^= ops.fetch_operand(mode)
    state.update_nz(state.a)

# @intent:note BIT命令はメモリの値のビット6, 7をそれぞれV, Nフラグにコピーし、A & Mの結果でZフラグを設定する。
def bit(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    val = ops.fetch_operand(mode)
    state.flag_z = (state.a & val) == 0
    state.flag_v = (val & 0x40) != 0
    state.flag_n = (val & 0x80) != 0

# --- Arithmetic Operations (ADC, SBC) ---

# @intent:responsibility 9bit加算の結果からA, C, Z, N, Vを更新します。
# @intent:note Vは「演算後のCとNの排他的論理和」で近似する。ハードウェアの式
#              (~(A ^ M) & (A ^ R) & 0x80) とは一致しない場合がある。
def _add_binary(state: Mos6502CpuState, val: int) -> None:
    res_wide = state.a + val + (1 if state.flag_c else 0)
    state.flag_c = (res_wide & 0x100) != 0
    state.a = res_wide & 0xFF
    state.update_nz(state.a)
    state.flag_v = state.flag_c != state.flag_n

def adc(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    _add_binary(state, ops.fetch_operand(mode))

# SBC A, M => ADC A, ~M
def sbc(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    _add_binary(state, ops.fetch_operand(mode) ^ 0xFF)

# --- Compare Operations (CMP, CPX, CPY) ---
# @intent:note 比較は結果を保存しない減算。C はレジスタ >= 値（ボローなし）の時にセット。

def _compare(state: Mos6502CpuState, reg_val: int, mem_val: int) -> None:
    state.update_nz((reg_val - mem_val) & 0xFF)
    state.flag_c = reg_val >= mem_val

def cmp(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    _compare(state, state.a, ops.fetch_operand(mode))

def cpx(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    _compare(state, state.x, ops.fetch_operand(mode))

def cpy(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    _compare(state, state.y, ops.fetch_operand(mode))

# --- Shift / Rotate Operations (ASL, LSR, ROL, ROR) ---
# @intent:note アキュムレータモードとメモリモードの両方を store_result で書き戻す。

def asl(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    val = ops.fetch_operand(mode)
    res = (val << 1) & 0xFF
    ops.store_result(mode, res)
    state.flag_c = (val & 0x80) != 0
    state.update_nz(res)

def lsr(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    val = ops.fetch_operand(mode)
    res = val >> 1
    ops.store_result(mode, res)
    state.flag_c = (val & 0x01) != 0
    state.update_nz(res) # N is always 0 for LSR

def rol(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    val = ops.fetch_operand(mode)
    res = ((val << 1) | (1 if state.flag_c else 0)) & 0xFF
    ops.store_result(mode, res)
    state.flag_c = (val & 0x80) != 0
    state.update_nz(res)

def ror(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    val = ops.fetch_operand(mode)
    res = (val >> 1) | (0x80 if state.flag_c else 0)
    ops.store_result(mode, res)
    state.flag_c = (val & 0x01) != 0
    state.update_nz(res)

# --- Increment / Decrement (INC, DEC, INX, DEX, INY, DEY) ---

def inc(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    res = (ops.fetch_operand(mode) + 1) & 0xFF
    ops.store_result(mode, res)
    state.update_nz(res)

def dec(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    res = (ops.fetch_operand(mode) - 1) & 0xFF
    ops.store_result(mode, res)
    state.update_nz(res)

def inx(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.x = (state.x + 1) & 0xFF
    state.update_nz(state.x)

def dex(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.x = (state.x - 1) & 0xFF
    state.update_nz(state.x)

def iny(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.y = (state.y + 1) & 0xFF
    state.update_nz(state.y)

def dey(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.y = (state.y - 1) & 0xFF
    state.update_nz(state.y)
