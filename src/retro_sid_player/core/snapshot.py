# src/retro_sid_player/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、1命令の実行結果（命令の詳細、サイクル数、バスアクティビティ）を
記録した不変のデータ構造を定義します。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from retro_sid_player.core.state import CpuState
from retro_sid_player.transport.bus import BusAccess

# @intent:responsibility 実行された命令の詳細を記録します。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    実行された命令の詳細（HEX、ニーモニック、アドレッシングモード）を記録するデータクラス。
    """
    opcode_hex: str # 例: "A9"
    mnemonic: str # 例: "LDA"
    mode: str = "implied" # アドレッシングモード名
    operand_bytes: List[int] = field(default_factory=list) # 生のオペランドバイト
    cycle_count: int = 0 # 命令実行に消費したクロックサイクル数
    length: int = 1 # 命令のバイト長
    illegal: bool = False # 未定義オペコードをNOPとして扱った場合True

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True) # 不変データ構造
class Metadata:
    """
    実行に関するメタデータ（累計サイクル数、命令の先頭アドレス）を記録するデータクラス。
    """
    cycle_count: int
    address: Optional[int] = None

# @intent:responsibility 1命令実行直後のCPUとバスの状態を記録します。
@dataclass(frozen=True) # 不変データ構造
class Snapshot:
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
    # @intent:rationale stateはコピーではない。呼び出し側が保持し続ける場合は自前でコピーすること。
