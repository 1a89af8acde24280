import pytest

from cavern.dungeon.config import (
    SEED_MAX,
    CorridorAlgorithm,
    GenerationConfig,
    InvalidConfigError,
    coerce_seed,
)


def test_defaults():
    cfg = GenerationConfig()
    assert (cfg.width, cfg.height) == (150, 150)
    assert cfg.fill_percent == 45
    assert cfg.use_noise is True
    assert cfg.corridor_algorithm is CorridorAlgorithm.ORGANIC
    assert cfg.corridor_width == 3
    assert cfg.min_room_size == 100
    assert cfg.min_wall_island_size == 20
    assert cfg.seed is None
    assert cfg.flood_fill_chunk == 4096
    assert cfg.validate() is cfg


@pytest.mark.parametrize(
    "field,value",
    [
        ("width", 2),
        ("height", 0),
        ("fill_percent", 100),
        ("fill_percent", -1),
        ("automata_steps", -1),
        ("soft_border_size", -1),
        ("min_room_size", -5),
        ("corridor_width", 0),
        ("organic_jitter", 1.5),
        ("noise_wavelength", 0.0),
        ("noise2_amplitude", -0.1),
        ("curve_control_offset", -1.0),
        ("curve_max_control", 0.0),
        ("flood_fill_chunk", 0),
    ],
)
def test_validate_rejects(field, value):
    cfg = GenerationConfig(**{field: value})
    with pytest.raises(InvalidConfigError):
        cfg.validate()


def test_invalid_config_error_is_value_error():
    assert issubclass(InvalidConfigError, ValueError)


def test_corridor_algorithm_coerced_from_string():
    assert GenerationConfig(corridor_algorithm="Curved").corridor_algorithm is CorridorAlgorithm.CURVED
    with pytest.raises(InvalidConfigError):
        GenerationConfig(corridor_algorithm="zigzag")


def test_from_mapping_coerces_strings():
    cfg = GenerationConfig.from_mapping(
        {"width": "80", "use_noise": "false", "organic_jitter": "0.5", "corridor_algorithm": "STRAIGHT", "seed": "42"}
    )
    assert cfg.width == 80
    assert cfg.use_noise is False
    assert cfg.organic_jitter == 0.5
    assert cfg.corridor_algorithm is CorridorAlgorithm.STRAIGHT
    assert cfg.seed == 42


def test_from_mapping_unknown_keys():
    with pytest.raises(InvalidConfigError):
        GenerationConfig.from_mapping({"colour": "red"})
    cfg = GenerationConfig.from_mapping({"colour": "red", "height": 12}, strict=False)
    assert cfg.height == 12


def test_from_mapping_bad_values():
    with pytest.raises(InvalidConfigError):
        GenerationConfig.from_mapping({"width": "wide"})
    with pytest.raises(InvalidConfigError):
        GenerationConfig.from_mapping({"use_noise": "maybe"})
    with pytest.raises(InvalidConfigError):
        GenerationConfig.from_mapping({"corridor_width": 2.5})


def test_from_env_reads_prefixed_variables():
    cfg = GenerationConfig.from_env(environ={"CAVERN_WIDTH": "64", "CAVERN_CORRIDOR_ALGORITHM": "orthogonal", "OTHER": "x"})
    assert cfg.width == 64
    assert cfg.corridor_algorithm is CorridorAlgorithm.ORTHOGONAL
    assert cfg.height == 150


def test_to_dict_round_trip():
    cfg = GenerationConfig(width=30, corridor_algorithm="curved", seed=7)
    data = cfg.to_dict()
    assert data["corridor_algorithm"] == "curved"
    assert GenerationConfig.from_mapping(data) == cfg


def test_resolved_seed():
    assert GenerationConfig(seed=5).resolved_seed() == 5
    s = GenerationConfig().resolved_seed()
    assert 0 <= s < SEED_MAX


def test_resolved_seed_matches_coerced_seed():
    for raw in (SEED_MAX, SEED_MAX + 12, -5, 2**40):
        assert GenerationConfig(seed=raw).resolved_seed() == coerce_seed(raw)
        assert 0 <= GenerationConfig(seed=raw).resolved_seed() < SEED_MAX


def test_coerce_seed():
    assert coerce_seed(17) == 17
    assert coerce_seed("17") == 17
    assert coerce_seed("goblin-warren") == coerce_seed("goblin-warren")
    assert coerce_seed("goblin-warren") != coerce_seed("goblin-warrens")
    assert 0 <= coerce_seed("goblin-warren") < SEED_MAX
    assert 0 <= coerce_seed(None) <= SEED_MAX
    assert 0 <= coerce_seed("   ") <= SEED_MAX
    with pytest.raises(InvalidConfigError):
        coerce_seed(True)
    with pytest.raises(InvalidConfigError):
        coerce_seed(1.5)
