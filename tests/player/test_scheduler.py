# tests/player/test_scheduler.py
"""
retro_sid_player.player.scheduler モジュールの単体テスト。
"""
import pytest

from retro_sid_player.common.errors import RunawayRoutineError, UnresolvedEntryPointError
from retro_sid_player.transport.bus import AddressSpace
from retro_sid_player.arch.mos6502.cpu import Mos6502Cpu
from retro_sid_player.player.invoker import SubroutineInvoker
from retro_sid_player.player.scheduler import PlaybackScheduler, PlaybackState, IRQ_VECTOR_ADDRESS

# @intent:test_suite ティック駆動のplayルーチン再入と、ティックの取りこぼしを検証します。

PLAY = 0x1010
COUNTER = 0x0400

@pytest.fixture
def bus():
    bus = AddressSpace()
    bus.load(PLAY, bytes([0xEE, 0x00, 0x04, 0x60]))  # INC $0400 / RTS
    return bus

@pytest.fixture
def scheduler(bus):
    cpu = Mos6502Cpu(bus)
    return PlaybackScheduler(SubroutineInvoker(cpu, bus, max_instructions=100), bus)


class TestPump:
    def test_initial_state(self, scheduler):
        assert scheduler.state == PlaybackState.STOPPED
        assert not scheduler.tick_pending
        assert not scheduler.is_armed

    # @intent:test_case_tick 再生中かつロード済みの時、1ティックで1回playルーチンが実行されることを検証します。
    def test_tick_runs_play_once(self, scheduler, bus):
        scheduler.arm(PLAY)
        scheduler.set_playing(True)
        scheduler.on_tick()
        assert scheduler.pump() is True
        assert bus.peek(COUNTER) == 1
        assert scheduler.last_result.entry_address == PLAY
        assert scheduler.pump() is False
        assert bus.peek(COUNTER) == 1

    # @intent:test_case_dropped_tick pump() 前に2回届いたティックは1回の実行にまとめられることを検証します（キューされない）。
    def test_two_ticks_before_pump_run_play_once(self, scheduler, bus):
        scheduler.arm(PLAY)
        scheduler.set_playing(True)
        scheduler.on_tick()
        scheduler.on_tick()
        scheduler.pump()
        scheduler.pump()
        assert bus.peek(COUNTER) == 1

    # @intent:test_case_stopped 停止中のティックは消費されるだけで、再生開始後に持ち越されないことを検証します。
    def test_tick_while_stopped_is_consumed(self, scheduler, bus):
        scheduler.arm(PLAY)
        scheduler.on_tick()
        assert scheduler.pump() is False
        assert not scheduler.tick_pending
        scheduler.set_playing(True)
        assert scheduler.pump() is False
        assert bus.peek(COUNTER) == 0

    def test_not_loaded_does_not_run(self, scheduler, bus):
        scheduler.set_playing(True)
        scheduler.on_tick()
        assert scheduler.pump() is False
        assert bus.peek(COUNTER) == 0

    def test_disarm(self, scheduler, bus):
        scheduler.arm(PLAY)
        scheduler.set_playing(True)
        scheduler.disarm()
        scheduler.on_tick()
        assert scheduler.pump() is False
        assert scheduler.play_address == 0


class TestPlayAddressResolution:
    # @intent:test_case_lazy playアドレスが0なら、初回実行時にIRQベクタ ($0314/$0315) から導出されることを検証します。
    def test_resolved_from_irq_vector(self, scheduler, bus):
        scheduler.arm(0)
        bus.load(IRQ_VECTOR_ADDRESS, bytes([PLAY & 0xFF, PLAY >> 8]))
        scheduler.set_playing(True)
        scheduler.on_tick()
        scheduler.pump()
        assert scheduler.play_address == PLAY
        assert bus.peek(COUNTER) == 1

    # @intent:test_case_once 導出は一度だけで、以後ベクタが書き換わっても同じアドレスを使うことを検証します。
    def test_resolved_only_once(self, scheduler, bus):
        scheduler.arm(0)
        bus.load(IRQ_VECTOR_ADDRESS, bytes([PLAY & 0xFF, PLAY >> 8]))
        scheduler.set_playing(True)
        scheduler.on_tick()
        scheduler.pump()
        bus.load(IRQ_VECTOR_ADDRESS, b"\x00\x20")
        scheduler.on_tick()
        scheduler.pump()
        assert scheduler.play_address == PLAY
        assert bus.peek(COUNTER) == 2

    # @intent:test_case_unresolved ベクタも0の場合はUnresolvedEntryPointErrorとなり、再生が停止することを検証します。
    def test_unresolved_raises_and_stops(self, scheduler):
        scheduler.arm(0)
        scheduler.set_playing(True)
        scheduler.on_tick()
        with pytest.raises(UnresolvedEntryPointError):
            scheduler.pump()
        assert scheduler.state == PlaybackState.STOPPED


class TestRunawayPlay:
    def test_runaway_play_stops_playback(self, scheduler, bus):
        bus.load(0x2000, bytes([0x4C, 0x00, 0x20]))
        scheduler.arm(0x2000)
        scheduler.set_playing(True)
        scheduler.on_tick()
        with pytest.raises(RunawayRoutineError):
            scheduler.pump()
        assert scheduler.state == PlaybackState.STOPPED
