from typing import Dict


def init_metrics() -> Dict[str, int | float | bool | dict]:
    return {
        'rooms_found': 0,
        'rooms_pruned': 0,
        'wall_islands_found': 0,
        'wall_islands_pruned': 0,
        'corridors_carved': 0,
        'direct_links': 0,
        'carved_cells': 0,
        'connect_iterations': 0,
        'flood_fill_cells': 0,
        'steps': 0,
        'yields': 0,
        'fully_connected': True,
        'runtime_ms': 0.0,
        'phase_ms': {},
    }
