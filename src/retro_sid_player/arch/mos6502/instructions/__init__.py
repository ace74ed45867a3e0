# src/retro_sid_player/arch/mos6502/instructions/__init__.py
"""
MOS 6502 命令セット実装パッケージ。
"""
from .base import AddressingMode, AddressingModeResolver
from .maps import (
    DecodedInstruction, IllegalInstruction, KnownInstruction, MNEMONICS, MODES,
    decode_opcode, execute_instruction,
)
