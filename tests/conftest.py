"""
Pytest configuration and shared fixtures.

Zewnętrzne narzędzia (solver, profiler, renderer) podmieniamy małymi skryptami
Pythona uruchamianymi przez `sys.executable`, więc testy orkiestratora
odpalają prawdziwe procesy, ale bez valgrinda i polygonfy.
"""
from __future__ import annotations

import sys
import textwrap
from pathlib import Path
from typing import Callable, List

import pytest

from tspbench.model import BenchConfig


FAKE_SOLVER = textwrap.dedent(
    r'''
    import re, sys

    args = sys.argv[1:]
    instance = args[0]
    out = args[args.index("-o") + 1] if "-o" in args else None
    name = None
    with open(instance) as f:
        for line in f:
            m = re.match(r"\s*NAME\s*:\s*(\S+)", line)
            if m:
                name = m.group(1)
                break
    if name is None or "BROKEN" in name:
        sys.stderr.write("solver: cannot solve\n")
        sys.exit(3)
    if "-p" in args:
        sys.stdout.write("0 0\n1 1\n0 1\n")
        sys.exit(0)
    if "-f" in args:
        sys.stderr.write("solver: profiling run\n")
        sys.exit(0)
    run = int(re.sub(r"\D", "", out.rsplit("/", 1)[-1]) or 0)
    with open(out, "w") as f:
        f.write("TOUR_SECTION\n")
        f.write("DISTANCE: %d\n" % (100 + run))
        if "PARTIAL" in name and run == 2:
            f.flush()
            sys.exit(139)
        if "NOTIME" not in name:
            f.write("TIME: %.2f\n" % (0.5 * run))
    '''
)

FAKE_PROFILER = textwrap.dedent(
    r'''
    import subprocess, sys

    log = sys.argv[1].split("=", 1)[1]
    code = subprocess.call(sys.argv[2:])
    with open(log, "w") as f:
        f.write("==1== HEAP SUMMARY: in use at exit: 0 bytes\n")
    sys.exit(code)
    '''
)

FAKE_RENDERER = textwrap.dedent(
    r'''
    import sys

    data = sys.stdin.read()
    with open(sys.argv[1], "w") as f:
        f.write("<svg>%d points</svg>\n" % len(data.splitlines()))
    '''
)


@pytest.fixture
def write_instance(tmp_path: Path) -> Callable[..., Path]:
    """Zapisz plik *.tsp z nagłówkiem NAME (albo bez niego)."""
    tours = tmp_path / "tours"
    tours.mkdir(exist_ok=True)

    def _write(filename: str, name: str = None, header: str = None) -> Path:
        p = tours / filename
        if header is None:
            header = f"NAME : {name}\n" if name is not None else ""
            header += "TYPE : TSP\nDIMENSION : 3\nEDGE_WEIGHT_TYPE : EUC_2D\n"
        p.write_text(header + "NODE_COORD_SECTION\n1 0 0\n2 1 1\n3 0 1\nEOF\n")
        return p

    return _write


@pytest.fixture
def write_artifact(tmp_path: Path) -> Callable[..., Path]:
    """Zapisz artefakt series/<label>/<filename>."""
    def _write(label: str, filename: str, text: str) -> Path:
        d = tmp_path / "series" / label
        d.mkdir(parents=True, exist_ok=True)
        p = d / filename
        p.write_text(text)
        return p

    return _write


@pytest.fixture
def fake_tools(tmp_path: Path) -> dict:
    """Ścieżki do skryptów udających solver / profiler / renderer."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    scripts = {}
    for name, body in (("solver", FAKE_SOLVER), ("profiler", FAKE_PROFILER), ("renderer", FAKE_RENDERER)):
        p = bin_dir / f"{name}.py"
        p.write_text(body)
        scripts[name] = p
    return scripts


@pytest.fixture
def solver_cmd(fake_tools: dict) -> List[str]:
    return [sys.executable, str(fake_tools["solver"])]


@pytest.fixture
def bench_config(tmp_path: Path, fake_tools: dict, solver_cmd: List[str]) -> BenchConfig:
    """Konfiguracja wskazująca na fałszywe narzędzia i katalogi w tmp_path."""
    return BenchConfig(
        solver_cmd=solver_cmd,
        repetitions=2,
        output_name="run1",
        runs=3,
        tours_dir=tmp_path / "tours",
        output_root=tmp_path / "output",
        profiler={"command": [sys.executable, str(fake_tools["profiler"]), "--log-file={log}"]},
        renderer={"command": [sys.executable, str(fake_tools["renderer"]), "{image}"]},
    )
