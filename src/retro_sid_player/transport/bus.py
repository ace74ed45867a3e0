# src/retro_sid_player/transport/bus.py
"""
Transport Layer (アドレス空間)

このモジュールは、エミュレートされた64KiBのフラットなメモリ空間を提供し、
SIDレジスタ窓への書き込みを外部のサウンドデバイスへ転送する責務を負います。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from retro_sid_player.common.types import RegisterWrite, RegisterWriteLog

MEMORY_SIZE = 0x10000

# SIDレジスタ窓: $D400 にアラインされた1024バイト ($D400-$D7FF)
SID_WINDOW_MASK = 0xFC00
SID_WINDOW_BASE = 0xD400
SID_REGISTER_MASK = 0x1F

# CIA2 割り込み制御レジスタ。読み出すと常に0 (自己クリア)。
CIA2_ICR_ADDRESS = 0xDD0D

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"
    DEVICE_WRITE = "DEVICE_WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    DEVICE_WRITEの場合、addressはデバイスのレジスタ番号(0-31)です。
    """
    address: int
    data: int # 8bit value
    access_type: BusAccessType

# @intent:responsibility サウンドデバイス境界の抽象インターフェースを定義します。
class SoundDevice(ABC):
    """
    外部のサウンドジェネレータ。レジスタ書き込みという単一の能力だけを持ちます。
    """
    # @intent:responsibility レジスタ `register` (0-31) に8bit値 `value` を書き込みます。
    @abstractmethod
    def write_register(self, register: int, value: int) -> None:
        pass

    # @intent:responsibility デバイスを初期状態に戻します。デフォルトは何もしません。
    def reset(self) -> None:
        pass

# @intent:responsibility 書き込まれたレジスタ値を記録するだけのサウンドデバイス。
# @intent:rationale 実デバイスへのトランスポートはスコープ外のため、CLIとテストはこれを使います。
class RecordingSoundDevice(SoundDevice):
    def __init__(self):
        self.writes: RegisterWriteLog = []
        self.registers = bytearray(SID_REGISTER_MASK + 1)
        self.reset_count = 0

    def write_register(self, register: int, value: int) -> None:
        self.writes.append(RegisterWrite(register, value))
        self.registers[register] = value

    def reset(self) -> None:
        self.registers = bytearray(SID_REGISTER_MASK + 1)
        self.reset_count += 1

    # @intent:responsibility 記録済みの書き込みを返し、記録をクリアします。
    def take_writes(self) -> RegisterWriteLog:
        writes = self.writes
        self.writes = []
        return writes

# @intent:responsibility 64KiBのアドレス空間を管理し、SIDレジスタ窓への書き込みをデバイスへ転送します。
# @intent:rationale 全てのメモリアクセスはこのクラスを通過します。CPUとレジスタは単一スレッドから
#                  のみ操作されるため、排他制御は行いません。
class AddressSpace:
    """
    フラットな64KiBメモリとレジスタ書き込みのインターセプト機構。
    trace=Trueの場合、全てのアクセスをアクティビティログに記録します。
    """
    def __init__(self, device: Optional[SoundDevice] = None, trace: bool = False):
        self._memory = bytearray(MEMORY_SIZE)
        self._device = device
        self._trace = trace
        self._bus_activity_log: List[BusAccess] = []

    @property
    def device(self) -> Optional[SoundDevice]:
        return self._device

    # @intent:responsibility サウンドデバイスを接続（または差し替え）します。
    def attach_device(self, device: Optional[SoundDevice]) -> None:
        self._device = device

    def set_trace(self, enabled: bool) -> None:
        self._trace = enabled
        if not enabled:
            self._bus_activity_log = []

    def _log_access(self, address: int, data: int, access_type: BusAccessType) -> None:
        if self._trace:
            self._bus_activity_log.append(BusAccess(address=address, data=data, access_type=access_type))

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します。
    # @intent:post-condition $DD0D の読み出しは保持値を0にしてから返します（副作用のある読み出し）。
    def read(self, address: int) -> int:
        address &= 0xFFFF
        if address == CIA2_ICR_ADDRESS:
            self._memory[address] = 0
        data = self._memory[address]
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility 副作用もログ記録もなしにメモリの値を読み出します（インスペクタ用）。
    def peek(self, address: int) -> int:
        return self._memory[address & 0xFFFF]

    # @intent:responsibility リトルエンディアンの16bitワードを読み出します（ベクタ読み出し用）。
    def read_word(self, address: int) -> int:
        return self.read(address) | (self.read((address + 1) & 0xFFFF) << 8)

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    # @intent:post-condition SIDレジスタ窓への書き込みはデバイスにも転送され、メモリにはシャドウコピーが残ります。
    def write(self, address: int, data: int) -> None:
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        address &= 0xFFFF
        if (address & SID_WINDOW_MASK) == SID_WINDOW_BASE:
            register = address & SID_REGISTER_MASK
            if self._device is not None:
                self._device.write_register(register, data)
            self._log_access(register, data, BusAccessType.DEVICE_WRITE)
        self._memory[address] = data
        self._log_access(address, data, BusAccessType.WRITE)

    # @intent:responsibility プログラムイメージをインターセプトなしで一括配置するバックドアです。
    # @intent:pre-condition イメージはアドレス空間の末尾を越えてはいけません。
    def load(self, address: int, data: bytes) -> None:
        address &= 0xFFFF
        end = address + len(data)
        if end > MEMORY_SIZE:
            raise ValueError(
                f"Image of {len(data)} bytes at ${address:04X} exceeds the 64 KiB address space."
            )
        self._memory[address:end] = data

    # @intent:responsibility メモリ全体を0でクリアします（ファイルロード前）。
    def clear(self) -> None:
        self._memory[:] = bytes(MEMORY_SIZE)
        self._bus_activity_log = []

    def get_size(self) -> int:
        return MEMORY_SIZE
