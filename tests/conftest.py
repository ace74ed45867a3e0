# tests/conftest.py
"""
テスト共通のフィクスチャ。PSID/RSID 形式のバイト列を組み立てるビルダーを提供します。
"""
import pytest


def build_sid(code: bytes = b"\x60", load: int = 0x1000, init: int = 0x1000, play: int = 0x1003,
              songs: int = 1, start: int = 1, magic: bytes = b"PSID", version: int = 2,
              data_offset: int = 0x7C, embedded_load=None, speed: int = 0,
              title: bytes = b"Test Tune", author: bytes = b"Tester", copyright: bytes = b"2024 Test") -> bytes:
    header = bytearray(data_offset)
    header[0:4] = magic
    header[4:6] = version.to_bytes(2, "big")
    header[6:8] = data_offset.to_bytes(2, "big")
    header[8:10] = load.to_bytes(2, "big")
    header[10:12] = init.to_bytes(2, "big")
    header[12:14] = play.to_bytes(2, "big")
    header[14:16] = songs.to_bytes(2, "big")
    header[16:18] = start.to_bytes(2, "big")
    header[18:22] = speed.to_bytes(4, "big")
    header[0x16:0x16 + len(title)] = title
    header[0x36:0x36 + len(author)] = author
    header[0x56:0x56 + len(copyright)] = copyright
    if embedded_load is None:
        embedded_load = load if load else 0x1000
    return bytes(header) + embedded_load.to_bytes(2, "little") + bytes(code)


@pytest.fixture
def make_sid():
    return build_sid
