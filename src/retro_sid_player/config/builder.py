from typing import Optional

from retro_sid_player.transport.bus import AddressSpace, SoundDevice
from retro_sid_player.arch.mos6502.cpu import Mos6502Cpu
from retro_sid_player.player.invoker import SubroutineInvoker
from retro_sid_player.player.scheduler import PlaybackScheduler
from retro_sid_player.player.sid_player import SidPlayer
from .models import PlayerConfig

# @intent:responsibility 設定（Config）に基づいて、AddressSpace、CPU、呼び出し器、スケジューラを生成・接続します。
class PlayerBuilder:
    def build_player(self, config: Optional[PlayerConfig] = None,
                     device: Optional[SoundDevice] = None) -> SidPlayer:
        config = config or PlayerConfig()
        bus = AddressSpace(device=device, trace=config.trace_bus)
        cpu = Mos6502Cpu(bus)
        invoker = SubroutineInvoker(cpu, bus, max_instructions=config.max_instructions_per_call)
        scheduler = PlaybackScheduler(invoker, bus)
        player = SidPlayer(bus, cpu, invoker, scheduler)
        player.begin()
        return player
