"""Generation settings.

``GenerationConfig`` is the single context object passed into a generation
run. It is validated before any grid is allocated; bad values raise
``InvalidConfigError``.
"""
from __future__ import annotations

import hashlib
import os
import random
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

SEED_MAX = 2**31 - 1


class InvalidConfigError(ValueError):
    """Raised when a GenerationConfig holds an unusable value."""


class CorridorAlgorithm(str, Enum):
    STRAIGHT = "straight"
    ORTHOGONAL = "orthogonal"
    ORGANIC = "organic"
    CURVED = "curved"

    @classmethod
    def coerce(cls, value) -> "CorridorAlgorithm":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(a.value for a in cls)
            raise InvalidConfigError(f"corridor_algorithm must be one of {names}, got {value!r}") from None


@dataclass
class GenerationConfig:
    width: int = 150
    height: int = 150
    fill_percent: int = 45
    use_noise: bool = True
    noise_wavelength: float = 0.05
    noise2_wavelength: float = 0.15
    noise2_amplitude: float = 0.5
    noise_threshold: float = 0.5
    soft_border_size: int = 5
    automata_steps: int = 5
    min_room_size: int = 100
    min_wall_island_size: int = 20
    corridor_algorithm: CorridorAlgorithm = CorridorAlgorithm.ORGANIC
    corridor_width: int = 3
    organic_jitter: float = 0.2
    curve_control_offset: float = 5.0
    curve_max_control: float = 0.1
    seed: Optional[int] = None
    # cells processed per flood fill unit before the yield check is consulted
    flood_fill_chunk: int = 4096

    def __post_init__(self):
        self.corridor_algorithm = CorridorAlgorithm.coerce(self.corridor_algorithm)

    def validate(self) -> "GenerationConfig":
        """Check every field; return self so calls can be chained."""
        errors = []
        if self.width < 3 or self.height < 3:
            errors.append(f"grid must be at least 3x3, got {self.width}x{self.height}")
        if not 0 <= self.fill_percent < 100:
            errors.append(f"fill_percent must be in [0,100), got {self.fill_percent}")
        if self.automata_steps < 0:
            errors.append("automata_steps must be >= 0")
        if self.soft_border_size < 0:
            errors.append("soft_border_size must be >= 0")
        if self.min_room_size < 0 or self.min_wall_island_size < 0:
            errors.append("minimum region sizes must be >= 0")
        if self.corridor_width < 1:
            errors.append(f"corridor_width must be >= 1, got {self.corridor_width}")
        if not 0.0 <= self.organic_jitter <= 1.0:
            errors.append(f"organic_jitter must be in [0,1], got {self.organic_jitter}")
        if self.noise_wavelength <= 0 or self.noise2_wavelength <= 0:
            errors.append("noise wavelengths must be > 0")
        if self.noise2_amplitude < 0:
            errors.append("noise2_amplitude must be >= 0")
        if self.curve_control_offset < 0:
            errors.append("curve_control_offset must be >= 0")
        if self.curve_max_control <= 0:
            errors.append("curve_max_control must be > 0")
        if self.flood_fill_chunk < 1:
            errors.append("flood_fill_chunk must be >= 1")
        if self.seed is not None and not isinstance(self.seed, int):
            errors.append(f"seed must be an int or None, got {type(self.seed).__name__}")
        if errors:
            raise InvalidConfigError("; ".join(errors))
        return self

    def resolved_seed(self) -> int:
        """Configured seed reduced into ``[0, SEED_MAX)``, or a random one when unset.

        Uses the same reduction as ``coerce_seed`` so a number gives the same
        dungeon whether it arrives here or through the API / CLI.
        """
        if self.seed is None:
            return random.randrange(SEED_MAX)
        return self.seed % SEED_MAX

    def with_seed(self, seed: int) -> "GenerationConfig":
        return replace(self, seed=seed)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["corridor_algorithm"] = self.corridor_algorithm.value
        return data

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], strict: bool = True) -> "GenerationConfig":
        """Build a config from a loosely typed mapping (query args, JSON, env).

        Strings are coerced to the field's type. Unknown keys raise
        InvalidConfigError unless ``strict`` is False.
        """
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, raw in data.items():
            if key not in known:
                if strict:
                    raise InvalidConfigError(f"unknown config key {key!r}")
                continue
            if raw is None or raw == "":
                if key == "seed":
                    kwargs[key] = None
                continue
            kwargs[key] = _coerce_field(key, raw, cls.__dataclass_fields__[key].default)
        return cls(**kwargs)

    @classmethod
    def from_env(cls, prefix: str = "CAVERN_", environ: Optional[Mapping[str, str]] = None) -> "GenerationConfig":
        """Read ``<prefix><FIELD>`` variables, e.g. CAVERN_WIDTH=80."""
        env = os.environ if environ is None else environ
        data = {}
        for f in fields(cls):
            key = prefix + f.name.upper()
            if key in env:
                data[f.name] = env[key]
        return cls.from_mapping(data)


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _coerce_field(name: str, raw: Any, default: Any) -> Any:
    if name == "corridor_algorithm":
        return CorridorAlgorithm.coerce(raw)
    if name == "seed":
        return coerce_seed(raw)
    try:
        if isinstance(default, bool):
            if isinstance(raw, bool):
                return raw
            s = str(raw).strip().lower()
            if s in _TRUE:
                return True
            if s in _FALSE:
                return False
            raise ValueError(s)
        if isinstance(default, int):
            if isinstance(raw, bool):
                raise ValueError(raw)
            if isinstance(raw, float) and not raw.is_integer():
                raise ValueError(raw)
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except (TypeError, ValueError):
        raise InvalidConfigError(f"{name}: cannot interpret {raw!r}") from None
    return raw


def coerce_seed(payload_seed) -> int:
    """Convert a provided seed (int or str) into a bounded non-negative int.

    Digit strings are parsed; any other non-empty string is hashed so names
    like "goblin-warren" map to a stable seed. Empty / None picks a random seed.
    """
    if payload_seed is None:
        return random.randrange(SEED_MAX)
    if isinstance(payload_seed, bool):
        raise InvalidConfigError("seed must be an int or string")
    if isinstance(payload_seed, int):
        return payload_seed % SEED_MAX
    if isinstance(payload_seed, str):
        s = payload_seed.strip()
        if not s:
            return random.randrange(SEED_MAX)
        if s.isdigit():
            return int(s) % SEED_MAX
        h = hashlib.sha256(s.encode("utf-8")).digest()
        return int.from_bytes(h[:8], "big") % SEED_MAX
    raise InvalidConfigError(f"seed must be an int or string, got {type(payload_seed).__name__}")


__all__ = ["GenerationConfig", "CorridorAlgorithm", "InvalidConfigError", "coerce_seed", "SEED_MAX"]
