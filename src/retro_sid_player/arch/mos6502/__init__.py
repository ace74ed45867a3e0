# src/retro_sid_player/arch/mos6502/__init__.py
"""
MOS 6502 (6510) Architecture Package
"""
from .cpu import Mos6502Cpu
from .state import Mos6502CpuState
