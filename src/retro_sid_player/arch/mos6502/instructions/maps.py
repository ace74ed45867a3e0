# src/retro_sid_player/arch/mos6502/instructions/maps.py
"""
MOS 6502 命令マップとデコード/実行ロジック。

オペコード(0-255) -> (ニーモニック, アドレッシングモード) の並列テーブルを
モジュール読み込み時に一度だけ構築します。未定義オペコードは暗黙アドレッシングの
2サイクルNOPとして実行されますが、デコード結果は IllegalInstruction として区別されます。
"""
from typing import Callable, Dict, NamedTuple, Tuple, Union

from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.state import Mos6502CpuState
from retro_sid_player.arch.mos6502.instructions import load, alu, control
from retro_sid_player.arch.mos6502.instructions.base import AddressingMode, AddressingModeResolver

M = AddressingMode

# Execution Function Type
ExecFunc = Callable[[Mos6502CpuState, AddressSpace, AddressingModeResolver, AddressingMode], None]

ILLEGAL_MNEMONIC = "???"
ILLEGAL_CYCLES = 2

# Opcode Entry: (Mnemonic, Addressing Mode)
OPCODE_MAP: Dict[int, Tuple[str, AddressingMode]] = {
    # --- Load/Store/Transfer ---
    0xA9: ("LDA", M.IMMEDIATE), 0xA5: ("LDA", M.ZEROPAGE), 0xB5: ("LDA", M.ZEROPAGE_X),
    0xAD: ("LDA", M.ABSOLUTE), 0xBD: ("LDA", M.ABSOLUTE_X), 0xB9: ("LDA", M.ABSOLUTE_Y),
    0xA1: ("LDA", M.INDEXED_INDIRECT), 0xB1: ("LDA", M.INDIRECT_INDEXED),

    0xA2: ("LDX", M.IMMEDIATE), 0xA6: ("LDX", M.ZEROPAGE), 0xB6: ("LDX", M.ZEROPAGE_Y),
    0xAE: ("LDX", M.ABSOLUTE), 0xBE: ("LDX", M.ABSOLUTE_Y),

    0xA0: ("LDY", M.IMMEDIATE), 0xA4: ("LDY", M.ZEROPAGE), 0xB4: ("LDY", M.ZEROPAGE_X),
    0xAC: ("LDY", M.ABSOLUTE), 0xBC: ("LDY", M.ABSOLUTE_X),

    0x85: ("STA", M.ZEROPAGE), 0x95: ("STA", M.ZEROPAGE_X), 0x8D: ("STA", M.ABSOLUTE),
    0x9D: ("STA", M.ABSOLUTE_X), 0x99: ("STA", M.ABSOLUTE_Y),
    0x81: ("STA", M.INDEXED_INDIRECT), 0x91: ("STA", M.INDIRECT_INDEXED),

    0x86: ("STX", M.ZEROPAGE), 0x96: ("STX", M.ZEROPAGE_Y), 0x8E: ("STX", M.ABSOLUTE),
    0x84: ("STY", M.ZEROPAGE), 0x94: ("STY", M.ZEROPAGE_X), 0x8C: ("STY", M.ABSOLUTE),

    0xAA: ("TAX", M.IMPLIED), 0xA8: ("TAY", M.IMPLIED), 0x8A: ("TXA", M.IMPLIED),
    0x98: ("TYA", M.IMPLIED), 0x9A: ("TXS", M.IMPLIED), 0xBA: ("TSX", M.IMPLIED),

    # --- ALU Operations ---
    0x69: ("ADC", M.IMMEDIATE), 0x65: ("ADC", M.ZEROPAGE), 0x75: ("ADC", M.ZEROPAGE_X),
    0x6D: ("ADC", M.ABSOLUTE), 0x7D: ("ADC", M.ABSOLUTE_X), 0x79: ("ADC", M.ABSOLUTE_Y),
    0x61: ("ADC", M.INDEXED_INDIRECT), 0x71: ("ADC", M.INDIRECT_INDEXED),

    0xE9: ("SBC", M.IMMEDIATE), 0xE5: ("SBC", M.ZEROPAGE), 0xF5: ("SBC", M.ZEROPAGE_X),
    0xED: ("SBC", M.ABSOLUTE), 0xFD: ("SBC", M.ABSOLUTE_X), 0xF9: ("SBC", M.ABSOLUTE_Y),
    0xE1: ("SBC", M.INDEXED_INDIRECT), 0xF1: ("SBC", M.INDIRECT_INDEXED),

    0xC9: ("CMP", M.IMMEDIATE), 0xC5: ("CMP", M.ZEROPAGE), 0xD5: ("CMP", M.ZEROPAGE_X),
    0xCD: ("CMP", M.ABSOLUTE), 0xDD: ("CMP", M.ABSOLUTE_X), 0xD9: ("CMP", M.ABSOLUTE_Y),
    0xC1: ("CMP", M.INDEXED_INDIRECT), 0xD1: ("CMP", M.INDIRECT_INDEXED),

    0xE0: ("CPX", M.IMMEDIATE), 0xE4: ("CPX", M.ZEROPAGE), 0xEC: ("CPX", M.ABSOLUTE),
    0xC0: ("CPY", M.IMMEDIATE), 0xC4: ("CPY", M.ZEROPAGE), 0xCC: ("CPY", M.ABSOLUTE),

    0x29: ("AND", M.IMMEDIATE), 0x25: ("AND", M.ZEROPAGE), 0x35: ("AND", M.ZEROPAGE_X),
    0x2D: ("AND", M.ABSOLUTE), 0x3D: ("AND", M.ABSOLUTE_X), 0x39: ("AND", M.ABSOLUTE_Y),
    0x21: ("AND", M.INDEXED_INDIRECT), 0x31: ("AND", M.INDIRECT_INDEXED),

    0x09: ("ORA", M.IMMEDIATE), 0x05: ("ORA", M.ZEROPAGE), 0x15: ("ORA", M.ZEROPAGE_X),
    0x0D: ("ORA", M.ABSOLUTE), 0x1D: ("ORA", M.ABSOLUTE_X), 0x19: ("ORA", M.ABSOLUTE_Y),
    0x01: ("ORA", M.INDEXED_INDIRECT), 0x11: ("ORA", M.INDIRECT_INDEXED),

    0x49: ("EOR", M.IMMEDIATE), 0x45: ("EOR", M.ZEROPAGE), 0x55: ("EOR", M.ZEROPAGE_X),
    0x4D: ("EOR", M.ABSOLUTE), 0x5D: ("EOR", M.ABSOLUTE_X), 0x59: ("EOR", M.ABSOLUTE_Y),
    0x41: ("EOR", M.INDEXED_INDIRECT), 0x51: ("EOR", M.INDIRECT_INDEXED),

    0x24: ("BIT", M.ZEROPAGE), 0x2C: ("BIT", M.ABSOLUTE),

    # Shift / Rotate
    0x0A: ("ASL", M.ACCUMULATOR), 0x06: ("ASL", M.ZEROPAGE), 0x16: ("ASL", M.ZEROPAGE_X),
    0x0E: ("ASL", M.ABSOLUTE), 0x1E: ("ASL", M.ABSOLUTE_X),

    0x4A: ("LSR", M.ACCUMULATOR), 0x46: ("LSR", M.ZEROPAGE), 0x56: ("LSR", M.ZEROPAGE_X),
    0x4E: ("LSR", M.ABSOLUTE), 0x5E: ("LSR", M.ABSOLUTE_X),

    0x2A: ("ROL", M.ACCUMULATOR), 0x26: ("ROL", M.ZEROPAGE), 0x36: ("ROL", M.ZEROPAGE_X),
    0x2E: ("ROL", M.ABSOLUTE), 0x3E: ("ROL", M.ABSOLUTE_X),

    0x6A: ("ROR", M.ACCUMULATOR), 0x66: ("ROR", M.ZEROPAGE), 0x76: ("ROR", M.ZEROPAGE_X),
    0x6E: ("ROR", M.ABSOLUTE), 0x7E: ("ROR", M.ABSOLUTE_X),

    # INC/DEC
    0xE6: ("INC", M.ZEROPAGE), 0xF6: ("INC", M.ZEROPAGE_X),
    0xEE: ("INC", M.ABSOLUTE), 0xFE: ("INC", M.ABSOLUTE_X),
    0xC6: ("DEC", M.ZEROPAGE), 0xD6: ("DEC", M.ZEROPAGE_X),
    0xCE: ("DEC", M.ABSOLUTE), 0xDE: ("DEC", M.ABSOLUTE_X),

    0xE8: ("INX", M.IMPLIED), 0xCA: ("DEX", M.IMPLIED),
    0xC8: ("INY", M.IMPLIED), 0x88: ("DEY", M.IMPLIED),

    # --- Control Instructions ---
    0x90: ("BCC", M.RELATIVE), 0xB0: ("BCS", M.RELATIVE),
    0xF0: ("BEQ", M.RELATIVE), 0xD0: ("BNE", M.RELATIVE),
    0x30: ("BMI", M.RELATIVE), 0x10: ("BPL", M.RELATIVE),
    0x50: ("BVC", M.RELATIVE), 0x70: ("BVS", M.RELATIVE),

    0x4C: ("JMP", M.ABSOLUTE), 0x6C: ("JMP", M.INDIRECT),
    0x20: ("JSR", M.ABSOLUTE), 0x60: ("RTS", M.IMPLIED),

    0x48: ("PHA", M.IMPLIED), 0x08: ("PHP", M.IMPLIED),
    0x68: ("PLA", M.IMPLIED), 0x28: ("PLP", M.IMPLIED),

    0x18: ("CLC", M.IMPLIED), 0x38: ("SEC", M.IMPLIED),
    0x58: ("CLI", M.IMPLIED), 0x78: ("SEI", M.IMPLIED),
    0xB8: ("CLV", M.IMPLIED), 0xD8: ("CLD", M.IMPLIED), 0xF8: ("SED", M.IMPLIED),

    # System
    0xEA: ("NOP", M.IMPLIED), 0x00: ("BRK", M.IMPLIED), 0x40: ("RTI", M.IMPLIED),
}

EXECUTE_MAP: Dict[str, ExecFunc] = {
    "LDA": load.lda, "LDX": load.ldx, "LDY": load.ldy,
    "STA": load.sta, "STX": load.stx, "STY": load.sty,
    "TAX": load.tax, "TAY": load.tay, "TXA": load.txa,
    "TYA": load.tya, "TSX": load.tsx, "TXS": load.txs,
    "ADC": alu.adc, "SBC": alu.sbc, "CMP": alu.cmp, "CPX": alu.cpx, "CPY": alu.cpy,
    "AND": alu.and_, "ORA": alu.ora, "EOR": alu.eor, "BIT": alu.bit,
    "ASL": alu.asl, "LSR": alu.lsr, "ROL": alu.rol, "ROR": alu.ror,
    "INC": alu.inc, "DEC": alu.dec, "INX": alu.inx, "DEX": alu.dex, "INY": alu.iny, "DEY": alu.dey,
    "BCC": control.bcc, "BCS": control.bcs, "BEQ": control.beq, "BNE": control.bne,
    "BMI": control.bmi, "BPL": control.bpl, "BVC": control.bvc, "BVS": control.bvs,
    "JMP": control.jmp, "JSR": control.jsr, "RTS": control.rts, "RTI": control.rti,
    "PHA": control.pha, "PHP": control.php, "PLA": control.pla, "PLP": control.plp,
    "CLC": control.clc, "SEC": control.sec, "CLI": control.cli, "SEI": control.sei,
    "CLV": control.clv, "CLD": control.cld, "SED": control.sed,
    "NOP": control.nop, "BRK": control.brk,
}

# @intent:data_structure 256エントリの並列ルックアップテーブル。
MNEMONICS: Tuple[str, ...] = tuple(
    OPCODE_MAP[op][0] if op in OPCODE_MAP else ILLEGAL_MNEMONIC for op in range(256)
)
MODES: Tuple[AddressingMode, ...] = tuple(
    OPCODE_MAP[op][1] if op in OPCODE_MAP else M.IMPLIED for op in range(256)
)


# @intent:responsibility 定義済み命令のデコード結果。
class KnownInstruction(NamedTuple):
    opcode: int
    mnemonic: str
    mode: AddressingMode
    execute: ExecFunc


# @intent:responsibility 未定義オペコードのデコード結果。
class IllegalInstruction(NamedTuple):
    opcode: int
    mnemonic: str = ILLEGAL_MNEMONIC
    mode: AddressingMode = M.IMPLIED


DecodedInstruction = Union[KnownInstruction, IllegalInstruction]

_DECODE_TABLE: Tuple[DecodedInstruction, ...] = tuple(
    KnownInstruction(op, MNEMONICS[op], MODES[op], EXECUTE_MAP[MNEMONICS[op]])
    if op in OPCODE_MAP else IllegalInstruction(op)
    for op in range(256)
)


def decode_opcode(opcode: int) -> DecodedInstruction:
    return _DECODE_TABLE[opcode & 0xFF]


# @intent:responsibility デコード済み命令を実行します。サイクルは ops.cycles に積算されます。
def execute_instruction(decoded: DecodedInstruction, state: Mos6502CpuState, bus: AddressSpace,
                        ops: AddressingModeResolver) -> None:
    if isinstance(decoded, IllegalInstruction):
        ops.cycles += ILLEGAL_CYCLES
        return
    decoded.execute(state, bus, ops, decoded.mode)
