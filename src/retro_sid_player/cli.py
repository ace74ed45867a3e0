# src/retro_sid_player/cli.py
"""
retro-sid-player コマンドラインフロントエンド。

Usage:
    retro-sid-player info tune.sid                 メタデータを表示
    retro-sid-player play tune.sid --ticks 50      50ティック分のレジスタ書き込みを表示
    retro-sid-player disasm tune.sid --count 64    initルーチンを逆アセンブル
"""
import argparse
import logging
import sys
from typing import Tuple

from retro_sid_player.common.errors import SidPlayerError
from retro_sid_player.config.builder import PlayerBuilder
from retro_sid_player.config.loader import ConfigLoader
from retro_sid_player.config.models import PlayerConfig
from retro_sid_player.loader.sid_file import SidFileMetadata, SidFileParser
from retro_sid_player.player.sid_player import SidPlayer
from retro_sid_player.transport.bus import RecordingSoundDevice


def _fmt_duration(seconds: float) -> str:
    s = int(seconds)
    return f"{s // 60}:{s % 60:02d}"


def _load_config(path) -> PlayerConfig:
    if path is None:
        return PlayerConfig()
    return ConfigLoader().load_from_file(path)


def _build(args, device=None) -> Tuple[SidPlayer, PlayerConfig]:
    config = _load_config(getattr(args, "config", None))
    if not args.verbose:
        logging.getLogger().setLevel(config.log_level)
    return PlayerBuilder().build_player(config, device), config


def _print_metadata(metadata: SidFileMetadata) -> None:
    print(f"Format:    {metadata.magic} v{metadata.version}")
    print(f"Title:     {metadata.title}")
    print(f"Author:    {metadata.author}")
    print(f"Copyright: {metadata.copyright}")
    print(f"Songs:     {metadata.num_songs} (default {metadata.start_song + 1})")
    print(f"Load:      ${metadata.load_address:04X} ({metadata.payload_size} bytes)")
    print(f"Init:      ${metadata.init_address:04X}")
    play = f"${metadata.play_address:04X}" if metadata.play_address else "IRQ vector"
    print(f"Play:      {play}")
    timer = "CIA timer" if metadata.uses_cia_timer(metadata.start_song) else "vertical blank"
    print(f"Speed:     {timer}")


def cmd_info(args) -> int:
    parser = SidFileParser()
    metadata = parser.parse(parser.read_file(args.file))
    _print_metadata(metadata)
    return 0


def cmd_play(args) -> int:
    device = RecordingSoundDevice()
    player, config = _build(args, device)
    sub_song = args.song - 1 if args.song is not None else None
    player.load_or_raise(SidFileParser().read_file(args.file), sub_song)
    print(f"Playing '{player.title}' song {player.current_song + 1}/{player.num_songs}")
    init_writes = device.take_writes()
    print(f"init: {len(init_writes)} register writes")

    player.play(True)
    for tick in range(args.ticks):
        player.on_tick()
        player.pump()
        writes = device.take_writes()
        line = " ".join(f"{w.register:02X}={w.value:02X}" for w in writes)
        print(f"{tick:5d}: {line}")

    print(f"Played {args.ticks} ticks ({_fmt_duration(args.ticks / config.tick_rate_hz)}), "
          f"{player.cpu.illegal_opcode_count} illegal opcodes")
    return 0


def cmd_disasm(args) -> int:
    player, _ = _build(args)
    metadata = player.load_or_raise(SidFileParser().read_file(args.file))
    for addr, hex_bytes, text in player.cpu.disassemble(metadata.init_address, args.count):
        print(f"{addr:04X}  {hex_bytes:<9}  {text}")
    return 0


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='retro-sid-player',
        description='Run the init/play routines of PSID/RSID music files on an emulated 6502.')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    p_info = sub.add_parser('info', help='Show file metadata')
    p_info.add_argument('file')
    p_info.set_defaults(func=cmd_info)

    p_play = sub.add_parser('play', help='Run play ticks and print SID register writes')
    p_play.add_argument('file')
    p_play.add_argument('-s', '--song', type=int, default=None,
                        help='Sub-song number, 1-based (default: header default)')
    p_play.add_argument('-t', '--ticks', type=int, default=50,
                        help='Number of ticks to run (default: 50)')
    p_play.add_argument('-c', '--config', default=None,
                        help='YAML configuration file')
    p_play.set_defaults(func=cmd_play)

    p_dis = sub.add_parser('disasm', help='Disassemble from the init address')
    p_dis.add_argument('file')
    p_dis.add_argument('-n', '--count', type=int, default=64,
                       help='Number of bytes to disassemble (default: 64)')
    p_dis.set_defaults(func=cmd_disasm)

    args = parser.parse_args(argv)

    if getattr(args, 'ticks', 0) < 0:
        parser.error(f"--ticks must be >= 0, got {args.ticks}")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        return args.func(args)
    except (SidPlayerError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        return 130


if __name__ == '__main__':
    sys.exit(main())
