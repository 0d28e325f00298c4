"""
Plik: tspbench/cli.py

Cel i rola w projekcie
----------------------
Interfejs wiersza poleceń (CLI) do uruchamiania benchmarku solvera TSP:
- trzy argumenty pozycyjne: polecenie solvera, wartość `-r` (repetitions)
  i nazwa przebiegu (katalog `output/<nazwa>`),
- opcjonalny plik konfiguracyjny JSON (`--config`), którego pola można
  *nadpisać* z linii poleceń (np. `--runs`, `--jobs`, `--no-profile`),
- tryb `--dry-run`: tylko wykrywa instancje i ich etykiety, bez procesów.

Jak łączy się z resztą:
- Używa `io.py` do I/O i `model.py` do walidacji konfiguracji,
- Właściwy benchmark prowadzi `runner.BenchmarkOrchestrator`.

Powiązanie z projektem:
- Komenda przewodnia: `tspbench ./tsp 5 baseline` (albo `python -m tspbench.cli ...`)
- Zły zestaw argumentów -> komunikat "Usage" i kod wyjścia != 0.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .errors import BenchError
from .instance import InstanceCase
from .io import iter_instance_files, read_json
from .model import BenchConfig
from .runner import BenchmarkOrchestrator


app = typer.Typer(add_completion=False, help="Benchmark solvera TSP: serie uruchomień i statystyki per instancja.")


def _merge_overrides(
    data: Dict[str, Any],
    runs: Optional[int],
    jobs: Optional[int],
    retries: Optional[int],
    timeout: Optional[float],
    tours: Optional[Path],
    output_root: Optional[Path],
    artifact_glob: Optional[str],
    report_format: Optional[str],
    notes: Optional[str],
    no_profile: bool,
    no_render: bool,
    skip_malformed: bool,
    ) -> BenchConfig:
    """Zastosuj ewentualne nadpisania z linii poleceń do słownika konfiguracji."""
    data = dict(data)

    if runs is not None:
        data["runs"] = runs
    if jobs is not None:
        data["jobs"] = jobs
    if retries is not None:
        data["retries"] = retries
    if timeout is not None:
        data["timeout_sec"] = timeout

    if tours is not None:
        data["tours_dir"] = str(tours)
    if output_root is not None:
        data["output_root"] = str(output_root)
    if artifact_glob is not None:
        data["artifact_glob"] = artifact_glob
    if report_format is not None:
        data["report_format"] = report_format
    if notes is not None:
        data["notes"] = notes

    if no_profile:
        data["profiler"] = {**(data.get("profiler") or {}), "enabled": False}
    if no_render:
        data["renderer"] = {**(data.get("renderer") or {}), "enabled": False}
    if skip_malformed:
        data["skip_malformed"] = True

    return BenchConfig.model_validate(data)


@app.command()
def main(
    cmd: str = typer.Argument(..., help="Polecenie solvera (np. './tsp' albo './tsp --greedy')"),
    repetitions: int = typer.Argument(..., help="Wartość flagi -r przekazywana solverowi"),
    output_name: str = typer.Argument(..., help="Nazwa przebiegu -> output/<nazwa>"),

    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="Plik konfiguracyjny JSON"),

    # Seria
    runs: Optional[int] = typer.Option(None, help="Liczba uruchomień na instancję (N >= 2, domyślnie 30)"),
    jobs: Optional[int] = typer.Option(None, help="Ile uruchomień serii równolegle"),
    retries: Optional[int] = typer.Option(None, help="Ponowienia nieudanego uruchomienia"),
    timeout: Optional[float] = typer.Option(None, help="Limit czasu procesu w sekundach (0 = brak)"),

    # Ścieżki / formaty
    tours: Optional[Path] = typer.Option(None, help="Katalog z plikami *.tsp (domyślnie: tours)"),
    output_root: Optional[Path] = typer.Option(None, help="Katalog nadrzędny wyników (domyślnie: output)"),
    artifact_glob: Optional[str] = typer.Option(None, help='Wzorzec artefaktów serii (domyślnie "*.tour")'),
    report_format: Optional[str] = typer.Option(None, "--format", help='"yaml" lub "json"'),
    notes: Optional[str] = typer.Option(None, help="Pole notes w raporcie"),

    # Etapy
    no_profile: bool = typer.Option(False, "--no-profile", help="Pomiń profiler pamięci"),
    no_render: bool = typer.Option(False, "--no-render", help="Pomiń renderowanie mapy"),
    skip_malformed: bool = typer.Option(False, "--skip-malformed", help="Pomijaj uszkodzone artefakty zamiast oznaczać instancję jako FAILED"),

    dry_run: bool = typer.Option(False, help="Tylko wykryj instancje - nie uruchamiaj solvera"),
    strict: bool = typer.Option(False, help="Kod wyjścia 1, jeśli którakolwiek instancja się nie powiodła"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Bez wypisywania postępu"),
):
    """Główna komenda: zbuduj konfigurację, przeprowadź benchmark i zapisz raport."""
    console = Console(quiet=quiet)

    # 1) Config z pliku (opcjonalnie) + argumenty pozycyjne
    data: Dict[str, Any] = read_json(config) if config is not None else {}
    data.update(solver_cmd=cmd, repetitions=repetitions, output_name=output_name)

    # 2) Nadpisania z CLI i walidacja
    try:
        bench = _merge_overrides(
            data, runs, jobs, retries, timeout, tours, output_root, artifact_glob,
            report_format, notes, no_profile, no_render, skip_malformed,
        )
    except ValidationError as e:
        console.print("[red]Niepoprawna konfiguracja:[/red]", markup=True)
        console.print(str(e), markup=False)
        raise typer.Exit(code=2)

    try:
        files = iter_instance_files(bench.tours_dir, bench.instance_glob)
    except FileNotFoundError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if dry_run:
        console.print(f"[green]Znaleziono instancji:[/green] {len(files)}")
        for path in files:
            try:
                label = InstanceCase.from_file(path).label
            except BenchError as e:
                console.print(f"  [red]{escape(str(path))}[/red]: {escape(str(e))}")
                continue
            console.print(f"  {escape(str(path))} -> [white]{escape(label)}[/white]")
        console.print("[yellow]Dry-run zakończony. Nie uruchamiam solvera.[/yellow]")
        raise typer.Exit(code=0)

    # 3) Benchmark
    orchestrator = BenchmarkOrchestrator(bench, console=console)
    try:
        report = orchestrator.run()
    finally:
        # częściowy raport zapisujemy także przy nieoczekiwanym wyjątku
        if orchestrator.started:
            path = orchestrator.write(orchestrator.report)
    console.print(
        f"[bold green]Zakończono.[/bold green] {len(report.results)} ok, "
        f"{len(report.failures)} failed. Wyniki w: {escape(str(path))}"
    )

    if orchestrator.interrupted:
        raise typer.Exit(code=130)
    if strict and report.failures:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
