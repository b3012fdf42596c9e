import pytest

import sync
from plrip.models import PassResult

ENV_VARS = ["PLRIP_PLAYLIST", "PLRIP_OUTPUT_DIR", "SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def test_missing_arguments_print_usage(capsys):
    with pytest.raises(SystemExit) as exc:
        sync.parse_args([])
    assert exc.value.code == 2
    assert "usage:" in capsys.readouterr().err


def test_missing_output_directory_exits_1(tmp_path, capsys):
    code = sync.main(["https://open.spotify.com/playlist/abc", "id", "secret", str(tmp_path / "missing")])

    assert code == 1
    assert "Output directory does not exist" in capsys.readouterr().err


def test_values_come_from_env_file(tmp_path):
    music = tmp_path / "music"
    music.mkdir()
    env_file = tmp_path / "plrip.env"
    env_file.write_text(
        f"PLRIP_PLAYLIST=abc\nPLRIP_OUTPUT_DIR={music}\nSPOTIFY_CLIENT_ID=id\nSPOTIFY_CLIENT_SECRET=secret\n"
    )

    args = sync.parse_args(["--env-file", str(env_file), "--track-delay", "10"])
    config = sync.build_config(args)

    assert config.playlist == "abc"
    assert config.output_dir == music
    assert config.client_id == "id"
    assert config.track_delay == 10.0
    assert config.sync_interval == 14400


def test_command_source_does_not_need_credentials(tmp_path):
    args = sync.parse_args(["--source", "command", "abc", "", "", str(tmp_path)])
    assert args.source == "command"
    assert args.output_dir == str(tmp_path)


def test_once_runs_single_pass(tmp_path, monkeypatch, capsys):
    class Service:
        def sync_pass(self):
            return PassResult(total=2, existing=2)

    monkeypatch.setattr(sync, "build_service", lambda args, config: Service())
    code = sync.main(["--once", "--source", "command", "abc", "", "", str(tmp_path)])

    assert code == 0
    assert "2 tracks: 0 downloaded, 2 already present" in capsys.readouterr().out
