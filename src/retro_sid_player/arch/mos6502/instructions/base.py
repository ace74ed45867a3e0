# src/retro_sid_player/arch/mos6502/instructions/base.py
"""
MOS 6502 アドレッシングモード解決ロジック。

6502の命令は「オペランドの読み出し」と「結果の書き込み」が分かれているため、
解決器は次の3つの操作を提供します。
- fetch_operand: オペランドバイトを消費して実効アドレスを求め、その値を読む
- store_result: 消費済みのオペランドバイト（PC直前）から同じ実効アドレスを再計算して書く
- store_fresh: ストア命令用。オペランドバイトを消費して実効アドレスに書く
"""
from enum import Enum
from typing import Dict, Tuple

from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.state import Mos6502CpuState, STACK_PAGE

# @intent:responsibility 6502のアドレッシングモードを列挙します。
class AddressingMode(Enum):
    IMPLIED = "implied"
    IMMEDIATE = "immediate"
    ABSOLUTE = "absolute"
    ABSOLUTE_X = "absolute_x"
    ABSOLUTE_Y = "absolute_y"
    ZEROPAGE = "zeropage"
    ZEROPAGE_X = "zeropage_x"
    ZEROPAGE_Y = "zeropage_y"
    INDIRECT = "indirect"
    INDEXED_INDIRECT = "indexed_indirect"  # ($xx,X)
    INDIRECT_INDEXED = "indirect_indexed"  # ($xx),Y
    ACCUMULATOR = "accumulator"
    RELATIVE = "relative"

M = AddressingMode

# @intent:data_structure 各モードが消費するオペランドのバイト数。
OPERAND_LENGTH: Dict[AddressingMode, int] = {
    M.IMPLIED: 0, M.ACCUMULATOR: 0,
    M.IMMEDIATE: 1, M.ZEROPAGE: 1, M.ZEROPAGE_X: 1, M.ZEROPAGE_Y: 1,
    M.RELATIVE: 1, M.INDEXED_INDIRECT: 1, M.INDIRECT_INDEXED: 1,
    M.ABSOLUTE: 2, M.ABSOLUTE_X: 2, M.ABSOLUTE_Y: 2, M.INDIRECT: 2,
}

# @intent:data_structure fetch_operandの基本サイクル数。
FETCH_CYCLES: Dict[AddressingMode, int] = {
    M.IMPLIED: 2, M.ACCUMULATOR: 2, M.IMMEDIATE: 2,
    M.ABSOLUTE: 4, M.ABSOLUTE_X: 4, M.ABSOLUTE_Y: 4,
    M.ZEROPAGE: 3, M.ZEROPAGE_X: 4, M.ZEROPAGE_Y: 4,
    M.INDEXED_INDIRECT: 6, M.INDIRECT_INDEXED: 5,
    M.INDIRECT: 5, M.RELATIVE: 2,
}

# @intent:data_structure store_result（リードモディファイライトの書き戻し）の追加サイクル数。
# ASL/LSR/ROL/ROR/INC/DEC が使うモードのみ。
STORE_RESULT_CYCLES: Dict[AddressingMode, int] = {
    M.ACCUMULATOR: 0,
    M.ABSOLUTE: 2, M.ABSOLUTE_X: 3,
    M.ZEROPAGE: 2, M.ZEROPAGE_X: 2,
}

# @intent:data_structure store_fresh（ストア命令）のサイクル数。STA/STX/STY が使うモードのみ。
STORE_FRESH_CYCLES: Dict[AddressingMode, int] = {
    M.ABSOLUTE: 4, M.ABSOLUTE_X: 4, M.ABSOLUTE_Y: 4,
    M.ZEROPAGE: 3, M.ZEROPAGE_X: 4, M.ZEROPAGE_Y: 4,
    M.INDEXED_INDIRECT: 6, M.INDIRECT_INDEXED: 5,
}

# ページ境界交差で読み出しに+1サイクルかかるモード
PAGE_PENALTY_MODES = (M.ABSOLUTE_X, M.ABSOLUTE_Y, M.INDIRECT_INDEXED)

# @intent:responsibility ページ境界交差判定。
def is_page_crossed(addr1: int, addr2: int) -> bool:
    return (addr1 & 0xFF00) != (addr2 & 0xFF00)

# @intent:responsibility 8bit値を符号付き整数として解釈します。
def to_signed(value: int) -> int:
    return value - 0x100 if value >= 0x80 else value

# --- Stack ---

# @intent:responsibility スタックへ1バイト積みます。SPはページ内でラップし、例外は発生しません。
def push(state: Mos6502CpuState, bus: AddressSpace, value: int) -> None:
    bus.write(STACK_PAGE | state.sp, value & 0xFF)
    state.sp = (state.sp - 1) & 0xFF

def pull(state: Mos6502CpuState, bus: AddressSpace) -> int:
    state.sp = (state.sp + 1) & 0xFF
    return bus.read(STACK_PAGE | state.sp)

# @intent:responsibility 16bit値を上位→下位の順で積みます（JSR/BRKと同じ並び）。
def push_word(state: Mos6502CpuState, bus: AddressSpace, value: int) -> None:
    push(state, bus, (value >> 8) & 0xFF)
    push(state, bus, value & 0xFF)

def pull_word(state: Mos6502CpuState, bus: AddressSpace) -> int:
    lo = pull(state, bus)
    hi = pull(state, bus)
    return (hi << 8) | lo


# @intent:responsibility 実効アドレスを解決し、オペランドの読み書きと可変サイクルの集計を行います。
# @intent:rationale サイクルカウンタ (cycles) は命令デコードのたびに0へ戻され、
#                  観測用にのみ使われます（実行フローの制御には使いません）。
class AddressingModeResolver:
    """
    現在のCPU状態とアドレス空間に対してアドレッシングモードを解決するクラス。
    """
    def __init__(self, state: Mos6502CpuState, bus: AddressSpace):
        self.state = state
        self.bus = bus
        self.cycles = 0

    # @intent:responsibility CPUのリセットなどでStateオブジェクトが差し替えられた時に再バインドします。
    def bind(self, state: Mos6502CpuState) -> None:
        self.state = state

    def reset_cycles(self) -> None:
        self.cycles = 0

    # @intent:responsibility PCの位置からバイトを読み、PCを1進めます。
    def next_byte(self) -> int:
        state = self.state
        value = self.bus.read(state.pc)
        state.pc = (state.pc + 1) & 0xFFFF
        return value

    def next_word(self) -> int:
        lo = self.next_byte()
        hi = self.next_byte()
        return (hi << 8) | lo

    # @intent:responsibility モードに応じたオペランドを取得します。consume=FalseならPC直前の消費済みバイトを読み直します。
    def _operand(self, mode: AddressingMode, consume: bool) -> int:
        length = OPERAND_LENGTH[mode]
        if consume:
            return self.next_word() if length == 2 else self.next_byte()
        pc = self.state.pc
        if length == 2:
            lo = self.bus.read((pc - 2) & 0xFFFF)
            hi = self.bus.read((pc - 1) & 0xFFFF)
            return (hi << 8) | lo
        return self.bus.read((pc - 1) & 0xFFFF)

    # @intent:responsibility オペランド値から (実効アドレス, インデックス加算前のベースアドレス) を計算します。
    def _effective_address(self, mode: AddressingMode, operand: int) -> Tuple[int, int]:
        state = self.state
        bus = self.bus
        if mode in (M.ABSOLUTE, M.ZEROPAGE):
            return operand, operand
        if mode == M.ABSOLUTE_X:
            return (operand + state.x) & 0xFFFF, operand
        if mode == M.ABSOLUTE_Y:
            return (operand + state.y) & 0xFFFF, operand
        # @intent:note ゼロページインデックスはページ内でラップアラウンドする
        if mode == M.ZEROPAGE_X:
            return (operand + state.x) & 0xFF, operand
        if mode == M.ZEROPAGE_Y:
            return (operand + state.y) & 0xFF, operand
        if mode == M.INDEXED_INDIRECT:
            ptr = (operand + state.x) & 0xFF
            addr = bus.read(ptr) | (bus.read((ptr + 1) & 0xFF) << 8)
            return addr, addr
        if mode == M.INDIRECT_INDEXED:
            base_addr = bus.read(operand) | (bus.read((operand + 1) & 0xFF) << 8)
            return (base_addr + state.y) & 0xFFFF, base_addr
        if mode == M.INDIRECT:
            # JMPバグ再現: ポインタが$xxFFの場合、上位バイトは同じページの$xx00から読む
            hi_ptr = (operand & 0xFF00) | ((operand + 1) & 0x00FF)
            addr = bus.read(operand) | (bus.read(hi_ptr) << 8)
            return addr, addr
        raise ValueError(f"Addressing mode {mode.value} has no effective address.")

    # @intent:responsibility オペランドを消費して値を返します。PCはモードのオペランド長だけ進みます。
    def fetch_operand(self, mode: AddressingMode) -> int:
        if mode == M.IMPLIED:
            self.cycles += FETCH_CYCLES[mode]
            return 0
        if mode == M.ACCUMULATOR:
            self.cycles += FETCH_CYCLES[mode]
            return self.state.a
        # 相対モードは符号なしの変位バイトをそのまま返す
        if mode in (M.IMMEDIATE, M.RELATIVE):
            self.cycles += FETCH_CYCLES[mode]
            return self.next_byte()

        addr, base_addr = self._effective_address(mode, self._operand(mode, consume=True))
        self.cycles += FETCH_CYCLES[mode]
        if mode in PAGE_PENALTY_MODES and is_page_crossed(base_addr, addr):
            self.cycles += 1
        return self.bus.read(addr)

    # @intent:responsibility 消費済みのオペランドから同じ実効アドレスを再計算して値を書き戻します。
    # @intent:pre-condition 同じ命令内で fetch_operand(mode) が先に呼ばれている必要があります（新しいバイトは消費しない）。
    def store_result(self, mode: AddressingMode, value: int) -> None:
        value &= 0xFF
        if mode == M.ACCUMULATOR:
            self.state.a = value
            return
        if mode not in STORE_RESULT_CYCLES:
            raise ValueError(f"Cannot store a result with addressing mode {mode.value}.")
        addr, base_addr = self._effective_address(mode, self._operand(mode, consume=False))
        self.cycles += STORE_RESULT_CYCLES[mode]
        # 読み出し時に加算済みのページ交差ペナルティを相殺する
        if mode == M.ABSOLUTE_X and is_page_crossed(base_addr, addr):
            self.cycles -= 1
        self.bus.write(addr, value)

    # @intent:responsibility ストア命令用。オペランドを消費して実効アドレスへ書き込みます（読み出しは行わない）。
    def store_fresh(self, mode: AddressingMode, value: int) -> None:
        value &= 0xFF
        if mode not in STORE_FRESH_CYCLES:
            raise ValueError(f"Cannot store with addressing mode {mode.value}.")
        addr, base_addr = self._effective_address(mode, self._operand(mode, consume=True))
        self.cycles += STORE_FRESH_CYCLES[mode]
        if mode == M.ABSOLUTE_Y and is_page_crossed(base_addr, addr):
            self.cycles += 1
        self.bus.write(addr, value)

    # @intent:responsibility JMP/JSR用。オペランドを消費して飛び先アドレスを返します。サイクルは命令側で加算します。
    def fetch_address(self, mode: AddressingMode) -> int:
        addr, _ = self._effective_address(mode, self._operand(mode, consume=True))
        return addr

    # @intent:responsibility 相対分岐。変位は条件に関わらず常に消費します。
    # @intent:note 成立時 +1 サイクル、ページ境界を跨ぐ場合は +2 サイクル。
    def branch(self, condition: bool) -> None:
        displacement = to_signed(self.fetch_operand(M.RELATIVE))
        state = self.state
        target = (state.pc + displacement) & 0xFFFF
        if condition:
            self.cycles += 2 if is_page_crossed(state.pc, target) else 1
            state.pc = target
