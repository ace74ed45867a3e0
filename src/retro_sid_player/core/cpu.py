# src/retro_sid_player/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
from abc import ABC, abstractmethod
from typing import Any, List

from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.core.snapshot import Snapshot, Operation, Metadata
from retro_sid_player.core.state import CpuState
from retro_sid_player.common.types import DisassemblyLine

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    アドレス空間とのインターフェース、基本的な状態管理、命令サイクルの抽象化を提供します。
    """
    # @intent:pre-condition `bus`は有効なAddressSpaceオブジェクトである必要があります。
    def __init__(self, bus: AddressSpace):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0

    # @intent:responsibility 現在のCPUの状態を返します。
    def get_state(self) -> CpuState:
        return self._state

    # @intent:responsibility 起動（またはリセット）以降の累計サイクル数を返します。
    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    # @intent:responsibility PCの指すオペコードを読み出し、PCを1進めます。
    @abstractmethod
    def _fetch(self) -> int:
        pass

    # @intent:responsibility オペコードを命令表現に変換します。
    @abstractmethod
    def _decode(self, opcode: int) -> Any:
        pass

    # @intent:responsibility デコード済みの命令を実行し、実際に消費したバイト数とサイクルを含むOperationを返します。
    @abstractmethod
    def _execute(self, decoded: Any) -> Operation:
        pass

    # @intent:responsibility CPUを1命令進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー（ログクリア→フェッチ→デコード→実行→Snapshot生成）を定義します。
    #                  6502ではオペランドの消費（PC更新）がアドレッシングモード解決と不可分なため、PC更新は実行フェーズに含めます。
    def step(self) -> Snapshot:
        """
        CPUを1命令サイクル進め、その時点でのCPUとバスの状態を含むSnapshotオブジェクトを返します。
        """
        # 1. 前処理: 前サイクルまでの残存ログを破棄
        self._bus.get_and_clear_activity_log()
        initial_pc = self._state.pc

        # 2. フェッチ
        opcode = self._fetch()

        # 3. デコード
        decoded = self._decode(opcode)

        # 4. 実行
        operation = self._execute(decoded)

        # 5. 後処理 & Snapshot生成
        return self._create_snapshot(initial_pc, operation)

    # @intent:responsibility スナップショットを生成します。
    def _create_snapshot(self, initial_pc: int, operation: Operation) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()
        self._cycle_count += operation.cycle_count
        return Snapshot(
            state=self._state,
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, address=initial_pc),
            bus_activity=bus_activity
        )

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[DisassemblyLine]:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_bytes, mnemonic) のタプルリストを返す。
        """
        pass
