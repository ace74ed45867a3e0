# src/retro_sid_player/arch/mos6502/instructions/control.py
"""
MOS 6502 制御系命令 (Branch, Jump, Stack, Flags, NOP)。
"""
from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.state import Mos6502CpuState, B_FLAG, R_FLAG
from retro_sid_player.arch.mos6502.instructions.base import (
    AddressingMode, AddressingModeResolver, push, pull, push_word, pull_word,
)

IRQ_BRK_VECTOR = 0xFFFE

# --- Branch Instructions ---
# @intent:note 変位バイトは分岐の成否に関わらず消費され、PCは常に正しく次の命令を指す。

def bcc(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.branch(not state.flag_c)

def bcs(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.branch(state.flag_c)

def beq(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.branch(state.flag_z)

def bne(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.branch(not state.flag_z)

def bmi(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.branch(state.flag_n)

def bpl(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.branch(not state.flag_n)

def bvc(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.branch(not state.flag_v)

def bvs(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.branch(state.flag_v)

# --- Jump Instructions ---

def jmp(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 3
    if mode == AddressingMode.INDIRECT:
        ops.cycles += 2
    state.pc = ops.fetch_address(mode)

# @intent:note 6502の仕様通り「JSR命令の最後のバイトのアドレス」(= 次の命令 - 1) を積む。
def jsr(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 6
    target = ops.fetch_address(mode)
    push_word(state, bus, (state.pc - 1) & 0xFFFF)
    state.pc = target

def rts(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 6
    state.pc = (pull_word(state, bus) + 1) & 0xFFFF

def rti(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 6
    state.p = pull(state, bus) & ~B_FLAG & 0xFF
    state.pc = pull_word(state, bus)

# --- Stack Operations (PHA, PHP, PLA, PLP) ---

def pha(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 3
    push(state, bus, state.a)

# PHP pushes status with Break(B) and Reserved(R) flags set to 1.
def php(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 3
    push(state, bus, state.p | B_FLAG | R_FLAG)

def pla(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 4
    state.a = pull(state, bus)
    state.update_nz(state.a)

# B flag in register doesn't physically exist, it's only on stack.
def plp(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 4
    state.p = pull(state, bus) & ~B_FLAG & 0xFF

# --- Flag Operations (CLC, SEC, etc) ---

def clc(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.flag_c = False

def sec(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.flag_c = True

def cli(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.flag_i = False

def sei(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.flag_i = True

def clv(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.flag_v = False

def cld(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.flag_d = False

def sed(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2
    state.flag_d = True

# --- System / Other ---

def nop(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 2

# @intent:note BRKは1バイト命令だが、戻りアドレスはパディングバイトを飛ばした PC+1。
#              ベクタ ($FFFE) が未設定(0)の場合、PCは$0000となり呼び出しは番兵に到達したとみなされる。
def brk(state: Mos6502CpuState, bus: AddressSpace, ops: AddressingModeResolver, mode: AddressingMode) -> None:
    ops.cycles += 7
    push_word(state, bus, (state.pc + 1) & 0xFFFF)
    push(state, bus, state.p | B_FLAG | R_FLAG)
    state.flag_i = True
    state.pc = bus.read_word(IRQ_BRK_VECTOR)
