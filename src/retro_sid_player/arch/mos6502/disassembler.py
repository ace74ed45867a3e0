# src/retro_sid_player/arch/mos6502/disassembler.py
"""
MOS 6502 逆アセンブラ。

デコーダの並列テーブル (MNEMONICS / MODES) だけを使い、命令は実行しません。
メモリは peek で読むため、$DD0D の自己クリアやバスアクティビティログには影響しません。
"""
from typing import List

from retro_sid_player.common.types import DisassemblyLine
from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.instructions.base import AddressingMode, OPERAND_LENGTH, to_signed
from retro_sid_player.arch.mos6502.instructions.maps import MNEMONICS, MODES, ILLEGAL_MNEMONIC

M = AddressingMode


# @intent:responsibility オペランドをアセンブラ表記の文字列に整形します。
def format_operand(mode: AddressingMode, operand: int, next_addr: int) -> str:
    if mode == M.IMMEDIATE:
        return f"#${operand:02X}"
    if mode == M.ZEROPAGE:
        return f"${operand:02X}"
    if mode == M.ZEROPAGE_X:
        return f"${operand:02X},X"
    if mode == M.ZEROPAGE_Y:
        return f"${operand:02X},Y"
    if mode == M.ABSOLUTE:
        return f"${operand:04X}"
    if mode == M.ABSOLUTE_X:
        return f"${operand:04X},X"
    if mode == M.ABSOLUTE_Y:
        return f"${operand:04X},Y"
    if mode == M.INDIRECT:
        return f"(${operand:04X})"
    if mode == M.INDEXED_INDIRECT:
        return f"(${operand:02X},X)"
    if mode == M.INDIRECT_INDEXED:
        return f"(${operand:02X}),Y"
    if mode == M.ACCUMULATOR:
        return "A"
    if mode == M.RELATIVE:
        # 分岐先の絶対アドレスで表示する
        return f"${(next_addr + to_signed(operand)) & 0xFFFF:04X}"
    return ""


# @intent:responsibility 指定されたメモリ範囲を逆アセンブルします。
def disassemble(bus: AddressSpace, start_addr: int, length: int) -> List[DisassemblyLine]:
    """
    メモリを解析し、(アドレス, HEX, ニーモニック) のリストを返す。
    未定義オペコードは1バイトの `DB $xx` として表示します。
    """
    results: List[DisassemblyLine] = []
    current_addr = start_addr
    end_addr = start_addr + length

    while current_addr < end_addr:
        if current_addr > 0xFFFF:
            break
        opcode = bus.peek(current_addr)
        mnemonic = MNEMONICS[opcode]

        if mnemonic == ILLEGAL_MNEMONIC:
            results.append((current_addr, f"{opcode:02X}", f"DB ${opcode:02X}"))
            current_addr += 1
            continue

        mode = MODES[opcode]
        operand_len = OPERAND_LENGTH[mode]
        raw = [bus.peek(current_addr + i) for i in range(1, operand_len + 1)]
        operand = raw[0] | (raw[1] << 8) if operand_len == 2 else (raw[0] if raw else 0)
        next_addr = current_addr + 1 + operand_len

        hex_str = " ".join(f"{b:02X}" for b in [opcode] + raw)
        text = f"{mnemonic} {format_operand(mode, operand, next_addr)}".strip()
        results.append((current_addr, hex_str, text))
        current_addr = next_addr

    return results
