import pytest

from ossim.program import ProgramError
from ossim.simulator import Config, Simulator, main, read_config

CALC_PROGRAM = "1 3\ncalc\ncalc\ncalc\n"
MEMORY_PROGRAM = "1 4\nalloc 300 0\nwrite 100 0 20\nread 0 20 0\nfree 0\n"


def _setup(tmp_path, config_text, programs):
    proc_dir = tmp_path / "input" / "proc"
    proc_dir.mkdir(parents=True)
    for name, text in programs.items():
        (proc_dir / name).write_text(text)
    config_path = tmp_path / "input" / "sched"
    config_path.write_text(config_text)
    return config_path


def test_read_config_parses_every_field(tmp_path):
    path = _setup(
        tmp_path,
        "2 4 2\n1048576\n16777216 0 0 0\n0 p0 130\n3 p1 39\n",
        {},
    )
    config = read_config(path)
    assert config.time_slot == 2
    assert config.num_cpus == 4
    assert config.memramsz == 1048576
    assert config.memswpsz == [16777216, 0, 0, 0]
    assert [(e.start_time, e.path, e.prio) for e in config.processes] == [
        (0, "input/proc/p0", 130),
        (3, "input/proc/p1", 39),
    ]


def test_read_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_config(tmp_path / "nothing")


def test_read_config_truncated(tmp_path):
    path = _setup(tmp_path, "2 1 2\n1048576\n65536 0 0 0\n0 p0 1\n", {})
    with pytest.raises(ValueError):
        read_config(path)


def test_two_processes_both_finish(tmp_path, capsys):
    path = _setup(
        tmp_path,
        "2 1 2\n65536\n65536 0 0 0\n0 p0 1\n1 p1 1\n",
        {"p0": CALC_PROGRAM, "p1": CALC_PROGRAM},
    )
    finished = Simulator(read_config(path), tmp_path).run()
    assert sorted(proc.path for proc in finished) == ["input/proc/p0", "input/proc/p1"]
    assert all(proc.pc == len(proc.code) for proc in finished)
    out = capsys.readouterr().out
    assert "Loaded a process at input/proc/p0" in out
    assert "CPU 0 stopped" in out


def test_idle_cpus_stop_too(tmp_path, capsys):
    path = _setup(
        tmp_path,
        "1 3 1\n65536\n65536 0 0 0\n0 p0 0\n",
        {"p0": CALC_PROGRAM},
    )
    finished = Simulator(read_config(path), tmp_path).run()
    assert [proc.path for proc in finished] == ["input/proc/p0"]
    out = capsys.readouterr().out
    assert all(f"CPU {cpu} stopped" in out for cpu in range(3))


def test_memory_program_writes_into_ram(tmp_path):
    path = _setup(
        tmp_path,
        "2 1 1\n65536\n65536 0 0 0\n0 p0 1\n",
        {"p0": MEMORY_PROGRAM},
    )
    sim = Simulator(read_config(path), tmp_path)
    finished = sim.run()
    assert len(finished) == 1
    assert 100 in sim.mram.storage
    assert finished[0].mm.symbol_region(0).size == 0


def test_missing_program_is_reported(tmp_path):
    config = Config(time_slot=1, num_cpus=1, memramsz=65536,
                    memswpsz=[65536, 0, 0, 0])
    path = _setup(tmp_path, "1 1 1\n65536\n65536 0 0 0\n0 ghost 1\n", {})
    config = read_config(path)
    with pytest.raises(ProgramError):
        Simulator(config, tmp_path).run()


def test_main_usage_error(capsys):
    assert main(["a", "b"]) == 1
    assert "Usage" in capsys.readouterr().out


def test_main_missing_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main(["absent"]) == 1


def test_main_runs_configuration(tmp_path, monkeypatch, capsys):
    _setup(
        tmp_path,
        "2 1 1\n65536\n65536 0 0 0\n0 p0 1\n",
        {"p0": CALC_PROGRAM},
    )
    monkeypatch.chdir(tmp_path)
    assert main(["sched"]) == 0
    assert "has finished" in capsys.readouterr().out