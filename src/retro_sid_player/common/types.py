"""
共通の型定義を提供するモジュール。
プロジェクト全体で使用される汎用的な型エイリアスなどを定義します。
"""
from typing import List, NamedTuple, Tuple

# @intent:data_structure 逆アセンブル結果の1行 (アドレス, HEXバイト列, ニーモニック)。
# CPU, CLIなど複数のレイヤーで共通して使用されます。
DisassemblyLine = Tuple[int, str, str]

# @intent:data_structure サウンドデバイスへの単一のレジスタ書き込み。
class RegisterWrite(NamedTuple):
    register: int  # 0-31
    value: int     # 8bit

# @intent:data_structure 1回のサブルーチン呼び出しの実行結果。
class CallResult(NamedTuple):
    entry_address: int
    instructions: int
    cycles: int

RegisterWriteLog = List[RegisterWrite]
