# src/retro_sid_player/player/sid_player.py
"""
プレイヤーの制御面 (Control Surface)。

アドレス空間、CPU、サブルーチン呼び出し、スケジューラ、ファイルパーサーを束ね、
ロード・再生・曲切り替え・メタデータ参照を提供します。
"""
import logging
from typing import Optional

from retro_sid_player.common.errors import SidPlayerError
from retro_sid_player.common.types import CallResult
from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.cpu import Mos6502Cpu
from retro_sid_player.loader.sid_file import SidFileMetadata, SidFileParser
from retro_sid_player.player.invoker import SubroutineInvoker
from retro_sid_player.player.scheduler import PlaybackScheduler, PlaybackState

logger = logging.getLogger(__name__)


# @intent:responsibility 音楽ファイルのinit/playルーチンをエミュレートし、サウンドデバイスを駆動します。
# @intent:rationale 全ての操作は単一の処理スレッドから呼ばれる前提です。タイマ側は on_tick() だけを呼びます。
class SidPlayer:
    def __init__(self, bus: AddressSpace, cpu: Mos6502Cpu, invoker: SubroutineInvoker,
                 scheduler: PlaybackScheduler, parser: Optional[SidFileParser] = None):
        self._bus = bus
        self._cpu = cpu
        self._invoker = invoker
        self._scheduler = scheduler
        self._parser = parser or SidFileParser()
        self._metadata: Optional[SidFileMetadata] = None
        self.last_init_result: Optional[CallResult] = None

    @property
    def bus(self) -> AddressSpace:
        return self._bus

    @property
    def cpu(self) -> Mos6502Cpu:
        return self._cpu

    @property
    def scheduler(self) -> PlaybackScheduler:
        return self._scheduler

    # @intent:responsibility サウンドデバイスとCPUを完全にリセットします。
    def begin(self) -> None:
        self._reset_device()
        self._cpu.reset()

    def _reset_device(self) -> None:
        device = self._bus.device
        if device is not None:
            device.reset()

    # @intent:responsibility バイト列からファイルをロードし、指定曲のinitルーチンを実行します。
    # @intent:post-condition 書式エラー時はFalseを返し、直前のセッションはそのまま残ります。
    def load(self, data: bytes, sub_song: Optional[int] = None) -> bool:
        try:
            self.load_or_raise(data, sub_song)
        except SidPlayerError as e:
            logger.warning("Could not load music file: %s", e)
            return False
        return True

    # @intent:responsibility load() の例外送出版。FormatError や RunawayRoutineError をそのまま送出します。
    def load_or_raise(self, data: bytes, sub_song: Optional[int] = None) -> SidFileMetadata:
        # load_into は検証に成功するまでアドレス空間を変更しない
        metadata = self._parser.load_into(self._bus, data)
        self._scheduler.disarm()
        self._metadata = None

        song = metadata.start_song if sub_song is None else sub_song
        if song < 0 or song >= metadata.num_songs:
            song = 0
        metadata.current_song = song

        self._reset_device()
        self._cpu.reset()
        try:
            self._run_init(metadata)
        except SidPlayerError:
            # アドレス空間は既に上書き済みのため、未ロード状態として再生も止める
            self._scheduler.set_playing(False)
            raise

        self._metadata = metadata
        self._scheduler.arm(metadata.play_address)
        logger.info(
            "Loaded '%s' by %s (%d songs, starting at %d).",
            metadata.title, metadata.author, metadata.num_songs, song + 1,
        )
        return metadata

    # @intent:responsibility ディスク上のファイルをロードします。
    def load_file(self, path, sub_song: Optional[int] = None) -> bool:
        try:
            data = self._parser.read_file(path)
        except (SidPlayerError, OSError) as e:
            logger.warning("Could not load music file: %s", e)
            return False
        return self.load(data, sub_song)

    def _run_init(self, metadata: SidFileMetadata) -> None:
        logger.debug("Calling init at $%04X with song %d.", metadata.init_address, metadata.current_song)
        self.last_init_result = self._invoker.call_and_run(metadata.init_address, metadata.current_song)

    # @intent:responsibility 再生/一時停止を要求します。ファイル未ロード時の再生要求は無視されます。
    def play(self, playing: bool = True) -> None:
        if playing and not self.is_loaded:
            return
        self._scheduler.set_playing(playing)

    def is_playing(self) -> bool:
        return self._scheduler.state == PlaybackState.PLAYING

    @property
    def is_loaded(self) -> bool:
        return self._metadata is not None

    # @intent:responsibility 次の曲へ切り替え、initを再実行します。
    # @intent:note フルロードと異なり、アドレス空間のクリアとサウンドデバイスのリセットは行いません。
    def next_song(self) -> None:
        metadata = self._metadata
        if metadata is None or metadata.current_song >= metadata.num_songs - 1:
            return
        self._switch_song(metadata, metadata.current_song + 1)

    # @intent:responsibility 前の曲へ切り替え、initを再実行します（next_songと同じ非対称性を持ちます）。
    def prev_song(self) -> None:
        metadata = self._metadata
        if metadata is None or metadata.current_song <= 0:
            return
        self._switch_song(metadata, metadata.current_song - 1)

    def _switch_song(self, metadata: SidFileMetadata, song: int) -> None:
        logger.debug("Switching to song %d.", song)
        metadata.current_song = song
        self._cpu.reset()
        self._run_init(metadata)

    # --- Metadata accessors ---

    @property
    def metadata(self) -> Optional[SidFileMetadata]:
        return self._metadata

    @property
    def title(self) -> str:
        return self._metadata.title if self._metadata else ""

    @property
    def author(self) -> str:
        return self._metadata.author if self._metadata else ""

    @property
    def copyright(self) -> str:
        return self._metadata.copyright if self._metadata else ""

    @property
    def num_songs(self) -> int:
        return self._metadata.num_songs if self._metadata else 0

    @property
    def current_song(self) -> int:
        return self._metadata.current_song if self._metadata else 0

    # --- Tick handling ---

    # @intent:responsibility 外部の周期タイマから呼ばれます。
    def on_tick(self) -> None:
        self._scheduler.on_tick()

    # @intent:responsibility 処理ループから呼ばれます。playルーチンを実行した場合にTrueを返します。
    def pump(self) -> bool:
        return self._scheduler.pump()
