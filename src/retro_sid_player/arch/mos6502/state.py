# src/retro_sid_player/arch/mos6502/state.py
"""
MOS 6502 (6510) CPUの状態定義。
"""
from dataclasses import dataclass
from retro_sid_player.core.state import CpuState

# ステータスレジスタ (P) ビットマスク
C_FLAG = 0x01  # Carry
Z_FLAG = 0x02  # Zero
I_FLAG = 0x04  # Interrupt Disable
D_FLAG = 0x08  # Decimal Mode (保持のみ。演算には影響しない)
B_FLAG = 0x10  # Break Command
R_FLAG = 0x20  # Reserved
V_FLAG = 0x40  # Overflow
N_FLAG = 0x80  # Negative

STACK_PAGE = 0x0100

# @intent:responsibility MOS 6502 CPUのレジスタ（A, X, Y, SP, P, PC）とフラグの状態を保持します。
# @intent:rationale SPは8bit値として保持し、スタックページ ($0100-$01FF) 内でラップアラウンドします。
@dataclass
class Mos6502CpuState(CpuState):
    """
    MOS 6502 CPUのレジスタ状態。
    リセット時の標準状態は A=X=Y=0, P=0, SP=0xFF です。
    """
    sp: int = 0xFF
    a: int = 0x00
    x: int = 0x00
    y: int = 0x00
    p: int = 0x00

    def _set_flag(self, mask: int, value: bool) -> None:
        if value: self.p |= mask
        else: self.p &= ~mask & 0xFF

    @property
    def flag_c(self) -> bool:
        return (self.p & C_FLAG) != 0

    @flag_c.setter
    def flag_c(self, value: bool) -> None:
        self._set_flag(C_FLAG, value)

    @property
    def flag_z(self) -> bool:
        return (self.p & Z_FLAG) != 0

    @flag_z.setter
    def flag_z(self, value: bool) -> None:
        self._set_flag(Z_FLAG, value)

    @property
    def flag_i(self) -> bool:
        return (self.p & I_FLAG) != 0

    @flag_i.setter
    def flag_i(self, value: bool) -> None:
        self._set_flag(I_FLAG, value)

    @property
    def flag_d(self) -> bool:
        return (self.p & D_FLAG) != 0

    @flag_d.setter
    def flag_d(self, value: bool) -> None:
        self._set_flag(D_FLAG, value)

    @property
    def flag_b(self) -> bool:
        return (self.p & B_FLAG) != 0

    @flag_b.setter
    def flag_b(self, value: bool) -> None:
        self._set_flag(B_FLAG, value)

    @property
    def flag_v(self) -> bool:
        return (self.p & V_FLAG) != 0

    @flag_v.setter
    def flag_v(self, value: bool) -> None:
        self._set_flag(V_FLAG, value)

    @property
    def flag_n(self) -> bool:
        return (self.p & N_FLAG) != 0

    @flag_n.setter
    def flag_n(self, value: bool) -> None:
        self._set_flag(N_FLAG, value)

    # @intent:responsibility 8bitの結果値からN, Zフラグを更新するヘルパー。
    def update_nz(self, value: int) -> None:
        self.flag_n = (value & 0x80) != 0
        self.flag_z = (value & 0xFF) == 0

    # @intent:responsibility サブルーチン呼び出し前の標準状態にレジスタを戻します。PCは呼び出し側が設定します。
    def clear_registers(self, a: int = 0) -> None:
        self.a = a & 0xFF
        self.x = 0
        self.y = 0
        self.p = 0
        self.sp = 0xFF
