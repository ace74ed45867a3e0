import yaml
from typing import Dict, Any

from retro_sid_player.common.errors import ConfigError
from .models import PlayerConfig, LOG_LEVELS

class ConfigLoader:
    def load_from_file(self, path: str) -> PlayerConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self.parse(data or {})

    def load_from_string(self, text: str) -> PlayerConfig:
        return self.parse(yaml.safe_load(text) or {})

    def parse(self, data: Dict[str, Any]) -> PlayerConfig:
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}.")

        defaults = PlayerConfig()
        player = data.get("player", data)

        tick_rate_hz = self._parse_int(player.get("tick_rate_hz", defaults.tick_rate_hz), "tick_rate_hz")
        if tick_rate_hz <= 0:
            raise ConfigError(f"tick_rate_hz must be positive, got {tick_rate_hz}.")

        max_instructions = self._parse_int(
            player.get("max_instructions_per_call", defaults.max_instructions_per_call),
            "max_instructions_per_call",
        )
        if max_instructions < 0:
            raise ConfigError(f"max_instructions_per_call must be >= 0, got {max_instructions}.")

        trace_bus = player.get("trace_bus", defaults.trace_bus)
        if not isinstance(trace_bus, bool):
            raise ConfigError(f"trace_bus must be true or false, got {trace_bus!r}.")

        log_level = str(player.get("log_level", defaults.log_level)).upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {log_level}")

        return PlayerConfig(
            tick_rate_hz=tick_rate_hz,
            max_instructions_per_call=max_instructions,
            trace_bus=trace_bus,
            log_level=log_level,
        )

    def _parse_int(self, value: Any, name: str) -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer for {name}: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                if value.lower().startswith("0x"):
                    return int(value, 16)
                return int(value)
            except ValueError:
                pass
        raise ConfigError(f"Invalid integer for {name}: {value}")
