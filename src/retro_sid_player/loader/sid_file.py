# src/retro_sid_player/loader/sid_file.py
"""
PSID/RSID 音楽ファイルのローダーモジュール。

ヘッダ（ビッグエンディアン）からエントリポイントとメタデータを読み出し、
プログラムイメージをアドレス空間に配置します。
"""
import logging
from dataclasses import dataclass

from retro_sid_player.common.errors import FormatError
from retro_sid_player.transport.bus import AddressSpace, MEMORY_SIZE

logger = logging.getLogger(__name__)

MIN_HEADER_SIZE = 0x7C
MAX_FILE_SIZE = 0x10000

MAGIC_PSID = b"PSID"
MAGIC_RSID = b"RSID"

# ヘッダオフセット
VERSION_OFFSET = 0x04
DATA_OFFSET_OFFSET = 0x07
LOAD_ADDRESS_OFFSET = 0x08
INIT_ADDRESS_OFFSET = 0x0A
PLAY_ADDRESS_OFFSET = 0x0C
SONGS_OFFSET = 0x0F
START_SONG_OFFSET = 0x11
SPEED_OFFSET = 0x12
TITLE_OFFSET = 0x16
AUTHOR_OFFSET = 0x36
COPYRIGHT_OFFSET = 0x56
TEXT_FIELD_SIZE = 32


def _be16(data: bytes, offset: int) -> int:
    return (data[offset] << 8) | data[offset + 1]


def _le16(data: bytes, offset: int) -> int:
    return data[offset] | (data[offset + 1] << 8)


# @intent:responsibility NUL埋めの固定長テキストフィールドを文字列に変換します。
def _text_field(data: bytes, offset: int) -> str:
    raw = bytes(data[offset:offset + TEXT_FIELD_SIZE])
    return raw.split(b"\x00", 1)[0].decode("latin-1")


# @intent:responsibility 音楽ファイルのヘッダ情報を保持します。
# @intent:rationale current_song以外はロード後に変化しません。曲の切り替えはcurrent_songだけを更新します。
@dataclass
class SidFileMetadata:
    magic: str
    version: int
    data_offset: int
    load_address: int
    init_address: int
    play_address: int  # 0 = 実行時にIRQベクタから導出
    num_songs: int
    start_song: int    # ヘッダの既定曲 (0始まり)
    speed: int
    title: str
    author: str
    copyright: str
    payload_size: int
    current_song: int = 0

    @property
    def is_rsid(self) -> bool:
        return self.magic == MAGIC_RSID.decode("ascii")

    # @intent:responsibility 指定した曲がCIAタイマ駆動（speedビットが1）かどうかを返します。32曲目以降はビット31を共有します。
    def uses_cia_timer(self, song: int) -> bool:
        bit = min(max(song, 0), 31)
        return bool((self.speed >> bit) & 1)


class SidFileParser:
    """
    PSID/RSID 形式のバイト列を解析するパーサー。
    parse は副作用を持たず、load_into は検証に成功した後でのみアドレス空間を書き換えます。
    """
    # @intent:responsibility ヘッダを検証・解析し、メタデータを返します。
    # @intent:pre-condition 失敗時はFormatErrorを送出し、何も変更しません。
    def parse(self, data: bytes) -> SidFileMetadata:
        length = len(data)
        if length < MIN_HEADER_SIZE:
            raise FormatError(f"File is too short: {length} bytes (need at least {MIN_HEADER_SIZE}).")

        magic = bytes(data[0:4])
        if magic not in (MAGIC_PSID, MAGIC_RSID):
            raise FormatError(f"Bad magic {magic!r}: expected 'PSID' or 'RSID'.")

        data_offset = data[DATA_OFFSET_OFFSET]
        if data_offset + 2 > length:
            raise FormatError(
                f"Header length ${data_offset:02X} points past the end of a {length}-byte buffer."
            )

        load_address = _be16(data, LOAD_ADDRESS_OFFSET)
        if load_address == 0:
            # プログラム自身に埋め込まれたロードアドレスを優先する
            load_address = _le16(data, data_offset)
        if load_address == 0:
            raise FormatError("Load address resolves to $0000.")

        payload_size = length - data_offset - 2
        if load_address + payload_size > MEMORY_SIZE:
            raise FormatError(
                f"Program image of {payload_size} bytes at ${load_address:04X} does not fit in 64 KiB."
            )

        start_song = max(data[START_SONG_OFFSET] - 1, 0)
        return SidFileMetadata(
            magic=magic.decode("ascii"),
            version=_be16(data, VERSION_OFFSET),
            data_offset=data_offset,
            load_address=load_address,
            init_address=_be16(data, INIT_ADDRESS_OFFSET),
            play_address=_be16(data, PLAY_ADDRESS_OFFSET),
            num_songs=data[SONGS_OFFSET],
            start_song=start_song,
            speed=int.from_bytes(bytes(data[SPEED_OFFSET:SPEED_OFFSET + 4]), "big"),
            title=_text_field(data, TITLE_OFFSET),
            author=_text_field(data, AUTHOR_OFFSET),
            copyright=_text_field(data, COPYRIGHT_OFFSET),
            payload_size=payload_size,
            current_song=start_song,
        )

    # @intent:responsibility 解析に成功した場合のみアドレス空間をクリアし、プログラムイメージを配置します。
    # @intent:post-condition イメージはロードアドレスから配置され、ペイロード先頭の2バイト（埋め込みアドレス）は含みません。
    def load_into(self, bus: AddressSpace, data: bytes) -> SidFileMetadata:
        metadata = self.parse(data)
        start = metadata.data_offset + 2
        bus.clear()
        bus.load(metadata.load_address, bytes(data[start:start + metadata.payload_size]))
        logger.debug(
            "Loaded %d bytes at $%04X (init=$%04X, play=$%04X).",
            metadata.payload_size, metadata.load_address, metadata.init_address, metadata.play_address,
        )
        return metadata

    # @intent:responsibility ディスク上のファイルを読み込みます。64KiBを超えるファイルは拒否します。
    def read_file(self, path) -> bytes:
        with open(path, "rb") as f:
            data = f.read(MAX_FILE_SIZE + 1)
        if len(data) > MAX_FILE_SIZE:
            raise FormatError(f"File {path} is larger than {MAX_FILE_SIZE} bytes.")
        return data
