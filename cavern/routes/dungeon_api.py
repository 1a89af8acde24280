"""
project: Cavern
module: dungeon_api.py
License: MIT

Dungeon generation JSON API.

Endpoints:
    GET       /api/dungeon/config    default generation settings
    POST      /api/dungeon/seed      coerce a user supplied seed (int or string)
    GET|POST  /api/dungeon/generate  generate (or fetch a cached) dungeon
    GET       /api/dungeon/metrics   metrics for a cached run, by seed
"""

import threading

from flask import Blueprint, current_app, jsonify, request

from cavern.dungeon import GenerationConfig, InvalidConfigError, coerce_seed, generate_dungeon
from cavern.logging_utils import get_logger

log = get_logger("cavern.routes.dungeon_api")

# Simple in-process cache config-key -> GenerationResult. Guarded by a lock since
# the dev server may handle requests on several threads.
_dungeon_cache = {}
_dungeon_cache_lock = threading.Lock()


def _cache_key(config: GenerationConfig) -> tuple:
    return tuple(sorted(config.to_dict().items()))


def clear_cache() -> None:
    with _dungeon_cache_lock:
        _dungeon_cache.clear()


def get_cached_dungeon(config: GenerationConfig):
    """Return the result for ``config`` (seed must be set), generating on a miss."""
    if current_app.config.get("CAVERN_DISABLE_CACHE"):
        return generate_dungeon(config)
    key = _cache_key(config)
    with _dungeon_cache_lock:
        result = _dungeon_cache.get(key)
        if result is not None:
            return result
    result = generate_dungeon(config)
    cache_max = current_app.config.get("CAVERN_CACHE_MAX", 8)
    with _dungeon_cache_lock:
        _dungeon_cache[key] = result
        while len(_dungeon_cache) > cache_max:
            first_key = next(iter(_dungeon_cache.keys()))
            if first_key == key:
                break
            _dungeon_cache.pop(first_key, None)
    return result


def find_cached_by_seed(seed: int):
    """Most recently cached result generated with ``seed``, or None."""
    with _dungeon_cache_lock:
        for result in reversed(list(_dungeon_cache.values())):
            if result.seed == seed:
                return result
    return None


bp_dungeon = Blueprint("dungeon", __name__)


@bp_dungeon.errorhandler(InvalidConfigError)
def _invalid_config(err):
    log.warn(event="invalid_config", error=str(err), path=request.path)
    return jsonify({"error": str(err)}), 400


@bp_dungeon.route("/api/dungeon/config", methods=["GET"])
def dungeon_config():
    """Default generation settings as JSON."""
    return jsonify(GenerationConfig().to_dict())


@bp_dungeon.route("/api/dungeon/seed", methods=["POST"])
def dungeon_seed():
    """Coerce a seed.

    Body JSON (optional): { "seed": <int|str|null> }
    Strings of digits are parsed, other strings are hashed, null picks a random seed.
    Response: { "seed": <int> }
    """
    data = request.get_json(silent=True) or {}
    return jsonify({"seed": coerce_seed(data.get("seed"))})


@bp_dungeon.route("/api/dungeon/generate", methods=["GET", "POST"])
def dungeon_generate():
    """Generate a dungeon from query args (GET) or a JSON body (POST).

    Any GenerationConfig field is accepted; unknown keys and grids larger than
    ``CAVERN_MAX_CELLS`` yield 400. A missing
    seed is replaced by a random one so the run can be fetched again later.
    """
    if request.method == "POST":
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise InvalidConfigError("request body must be a JSON object")
    else:
        data = request.args.to_dict()
    config = GenerationConfig.from_mapping(data).validate()
    max_cells = current_app.config.get("CAVERN_MAX_CELLS", 1_000_000)
    if config.width * config.height > max_cells:
        raise InvalidConfigError(
            f"grid of {config.width}x{config.height} exceeds the {max_cells} cell limit"
        )
    if config.seed is None:
        config = config.with_seed(config.resolved_seed())
    result = get_cached_dungeon(config)
    return jsonify(result.to_dict())


@bp_dungeon.route("/api/dungeon/metrics", methods=["GET"])
def dungeon_metrics():
    """Metrics of a cached run.

    Response: { seed, size: [w, h], metrics: {...}, flags: { fully_connected, corridor_algorithm } }
    """
    raw = request.args.get("seed")
    if raw is None or raw == "":
        return jsonify({"error": "seed query parameter required"}), 400
    seed = coerce_seed(raw)
    result = find_cached_by_seed(seed)
    if result is None:
        return jsonify({"error": f"no cached dungeon for seed {seed}"}), 404
    return jsonify(
        {
            "seed": result.seed,
            "size": [result.grid.width, result.grid.height],
            "metrics": result.metrics,
            "flags": {
                "fully_connected": result.fully_connected,
                "corridor_algorithm": result.config.corridor_algorithm.value,
            },
        }
    )
