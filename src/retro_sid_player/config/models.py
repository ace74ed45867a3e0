from dataclasses import dataclass

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

@dataclass
class PlayerConfig:
    tick_rate_hz: int = 50  # 50 (PAL) / 60 (NTSC)
    max_instructions_per_call: int = 1_000_000  # 0 = 上限なし
    trace_bus: bool = False
    log_level: str = "WARNING"
