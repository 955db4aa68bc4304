import io
from pathlib import Path

import pytest

from orchestration.run_rebalance import (
    EXIT_ABORTED,
    EXIT_CONFIG_ERROR,
    EXIT_OK,
    FAILURE_REPORT_HEADER,
    apply_cli_overrides,
    build_parser,
    main,
    report_failures,
)
from common.config import Config
from exceptions.exceptions import ConfigError


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    # ./config.yaml is picked up implicitly, keep the test cwd clean
    monkeypatch.chdir(tmp_path)


def _write_config(path: Path, sources, destinations, min_size=0, max_size="1MiB", prefix="vol_") -> Path:
    lines = ["paths:", "  sources:"]
    lines += [f"    - {s}" for s in sources]
    lines += ["  destinations:"]
    lines += [f"    - {d}" for d in destinations]
    lines += ["filter:", f"  min_size: {min_size}", f"  max_size: {max_size}", f"  prefix: {prefix}"]
    path.write_text("\n".join(lines) + "\n")
    return path


def test_main_moves_folders_and_exits_cleanly(tmp_path, make_folder, capsys):
    a1, b1 = tmp_path / "a1", tmp_path / "b1"
    a1.mkdir()
    b1.mkdir()
    make_folder(a1, "vol_x", 100)
    make_folder(a1, "vol_y", 100)
    cfg = _write_config(tmp_path / "rebalance.yaml", [a1], [b1])

    code = main(["--config", str(cfg)])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "Sources exhausted" in out
    assert FAILURE_REPORT_HEADER not in out
    assert sorted(p.name for p in b1.iterdir()) == ["vol_x", "vol_y"]


def test_main_prints_failed_sources_one_per_line(tmp_path, make_folder, capsys):
    a1, b1 = tmp_path / "a1", tmp_path / "b1"
    a1.mkdir()
    b1.mkdir()
    source = make_folder(a1, "vol_x", 100)
    (b1 / "vol_x").mkdir()  # name clash: the transfer is refused
    cfg = _write_config(tmp_path / "rebalance.yaml", [a1], [b1])

    code = main(["--config", str(cfg)])

    out = capsys.readouterr().out.splitlines()
    assert code == EXIT_OK
    assert out[-2:] == [FAILURE_REPORT_HEADER, str(source)]
    assert source.is_dir()


def test_main_reports_destinations_exhausted(tmp_path, make_folder, capsys):
    a1 = tmp_path / "a1"
    a1.mkdir()
    make_folder(a1, "vol_x", 100)
    cfg = _write_config(tmp_path / "rebalance.yaml", [a1], [tmp_path / "unplugged"])

    code = main(["--config", str(cfg)])

    assert code == EXIT_OK
    assert "Destinations exhausted" in capsys.readouterr().out


def test_main_missing_config_is_a_startup_error(tmp_path):
    assert main(["--config", str(tmp_path / "nope.yaml")]) == EXIT_CONFIG_ERROR


def test_main_rejects_inverted_filter_before_running(tmp_path, make_folder):
    a1, b1 = tmp_path / "a1", tmp_path / "b1"
    a1.mkdir()
    b1.mkdir()
    make_folder(a1, "vol_x", 100)
    cfg = _write_config(tmp_path / "rebalance.yaml", [a1], [b1])

    code = main(["--config", str(cfg), "--min-size", "2MiB"])

    assert code == EXIT_CONFIG_ERROR
    assert (a1 / "vol_x").is_dir()
    assert list(b1.iterdir()) == []


def test_main_aborts_on_unmeasurable_folder(tmp_path, make_folder):
    a1, b1 = tmp_path / "a1", tmp_path / "b1"
    a1.mkdir()
    b1.mkdir()
    folder = make_folder(a1, "vol_x", 100)
    (folder / "dangling").symlink_to(tmp_path / "nowhere")
    cfg = _write_config(tmp_path / "rebalance.yaml", [a1], [b1])

    assert main(["--config", str(cfg)]) == EXIT_ABORTED
    assert folder.is_dir()


def test_config_yaml_in_cwd_is_used_by_default(tmp_path, make_folder):
    a1, b1 = tmp_path / "a1", tmp_path / "b1"
    a1.mkdir()
    b1.mkdir()
    make_folder(a1, "vol_x", 100)
    _write_config(tmp_path / "config.yaml", [a1], [b1])

    assert main([]) == EXIT_OK
    assert (b1 / "vol_x").is_dir()


def test_cli_flags_override_config_values():
    parser = build_parser()
    parser.set_defaults(min_size=0, max_size=10, prefix="", method="copy", max_parallel=None, max_rounds=None)
    args = parser.parse_args([
        "--source", "/x", "--source", "/y", "--max-size", "5GiB", "--prefix", "vol_",
        "--method", "rsync", "--max-parallel", "3",
    ])

    cfg = apply_cli_overrides(Config(), args)

    assert cfg.paths.sources == ("/x", "/y")
    assert cfg.paths.destinations == ()
    assert cfg.filter.max_size == 5 * 1024 ** 3
    assert cfg.filter.prefix == "vol_"
    assert cfg.transfer.method == "rsync"
    assert cfg.transfer.max_parallel_transfers == 3


def test_cli_rejects_bad_size_and_counts():
    parser = build_parser()
    parser.set_defaults(min_size=0, max_size=10, prefix="", method="copy")

    with pytest.raises(ConfigError):
        apply_cli_overrides(Config(), parser.parse_args(["--max-size", "huge"]))
    with pytest.raises(ConfigError):
        apply_cli_overrides(Config(), parser.parse_args(["--max-rounds", "0"]))


def test_report_failures_is_silent_when_nothing_failed():
    out = io.StringIO()
    report_failures([], out)
    assert out.getvalue() == ""

    report_failures([Path("/mnt/a1/vol_a"), Path("/mnt/a2/vol_b")], out)
    assert out.getvalue().splitlines() == [FAILURE_REPORT_HEADER, "/mnt/a1/vol_a", "/mnt/a2/vol_b"]
