import importlib
import json
import os
import sys

import pytest

# Import run.py as a module and exercise parse_args + main with a patched
# start_server so no networking happens.

SMALL = ["--width", "30", "--height", "20", "--min-room", "8", "--seed", "99"]


@pytest.fixture()
def run_module(monkeypatch):
    if "run" in sys.modules:
        del sys.modules["run"]
    mod = importlib.import_module("run")
    return mod


def test_version_flag_outputs_version(run_module, capsys):
    from cavern import __version__

    with pytest.raises(SystemExit) as exc:
        run_module.parse_args(["--version"])
    assert exc.value.code == 0
    captured = capsys.readouterr().out
    assert __version__ in captured
    assert "Cavern" in captured


def test_default_command_is_generate(run_module):
    ns = run_module.parse_args([])
    assert ns.command == "generate"


def test_generate_prints_ascii_map(run_module, capsys):
    assert run_module.main(["generate", *SMALL]) == 0
    out = capsys.readouterr().out.splitlines()
    rows = out[:20]
    assert all(len(r) == 30 for r in rows)
    assert set("".join(rows)) <= {"#", ".", "+"}
    assert "seed=99" in out[20]


def test_generate_json(run_module, capsys):
    assert run_module.main(["generate", *SMALL, "--json", "--corridor", "orthogonal", "--no-noise"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["seed"] == 99
    assert data["config"]["corridor_algorithm"] == "orthogonal"
    assert data["config"]["use_noise"] is False


def test_generate_same_seed_is_repeatable(run_module, capsys):
    run_module.main(["generate", *SMALL, "--json"])
    first = json.loads(capsys.readouterr().out)["rows"]
    run_module.main(["generate", *SMALL, "--json"])
    assert json.loads(capsys.readouterr().out)["rows"] == first


def test_invalid_option_exits_1(run_module, capsys):
    assert run_module.main(["generate", "--width", "2"]) == 1
    assert "[ERROR]" in capsys.readouterr().err


def test_env_settings_are_used(monkeypatch, run_module, capsys):
    monkeypatch.setenv("CAVERN_WIDTH", "25")
    monkeypatch.setenv("CAVERN_HEIGHT", "15")
    monkeypatch.setenv("CAVERN_MIN_ROOM_SIZE", "5")
    run_module.main(["generate", "--seed", "3", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert (data["width"], data["height"]) == (25, 15)


def test_strict_mode_exit_code(monkeypatch, run_module, capsys):
    import cavern.dungeon as dungeon_pkg

    real = dungeon_pkg.generate_dungeon

    def partial(config):
        result = real(config)
        result.fully_connected = False
        result.failure_reason = "forced"
        return result

    monkeypatch.setattr(dungeon_pkg, "generate_dungeon", partial)
    assert run_module.main(["generate", *SMALL]) == 0
    assert run_module.main(["generate", *SMALL, "--strict"]) == 2


def test_server_main_invokes_start_server(monkeypatch, run_module):
    calls = {}

    def fake_start_server(host, port, debug):
        calls["host"] = host
        calls["port"] = port
        calls["debug"] = debug

    monkeypatch.setenv("PORT", "5555")
    monkeypatch.setenv("HOST", "127.0.0.1")
    import cavern.server as server_mod

    monkeypatch.setattr(server_mod, "start_server", fake_start_server)
    assert run_module.main(["server"]) == 0
    assert calls == {"host": "127.0.0.1", "port": 5555, "debug": False}


def test_server_main_debug_flag(monkeypatch, run_module):
    calls = {}
    import cavern.server as server_mod

    monkeypatch.setattr(server_mod, "start_server", lambda host, port, debug: calls.update(debug=debug))
    run_module.main(["server", "--debug", "--port", "6001"])
    assert calls["debug"] is True


def test_env_file_argument(monkeypatch, tmp_path, run_module, capsys):
    env_file = tmp_path / ".env"
    env_file.write_text("CAVERN_WIDTH=22\nCAVERN_HEIGHT=12\nCAVERN_MIN_ROOM_SIZE=4\n")
    # load_dotenv never overrides, and the autouse fixture removed any CAVERN_* vars
    try:
        run_module.main(["--env-file", str(env_file), "generate", "--seed", "5", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["width"] == 22
    finally:
        for key in ("CAVERN_WIDTH", "CAVERN_HEIGHT", "CAVERN_MIN_ROOM_SIZE"):
            os.environ.pop(key, None)
