"""
Plik: tspbench/runner.py

Cel i rola w projekcie
----------------------
To jest „kierownik” benchmarku (high-level runner) dla całego projektu.
Ten moduł:
1) Tworzy strukturę katalogów przebiegu (`io.prepare_output_dirs`).
2) Wyszukuje instancje `tours/*.tsp` (`io.iter_instance_files`).
3) Dla każdej instancji:
   - czyta etykietę (`InstanceCase.from_file`),
   - uruchamia solver `BenchConfig.runs` razy, każdy run pisze do `series/<label>/<i>.tour`,
   - zbiera serię (`collector.collect`),
   - uruchamia raz profiler (`valgrind/<label>.log`) i raz renderer (`map/<label>.svg`),
   - liczy statystyki (`InstanceCase.summarize`) i dopisuje je do raportu.
4) Zapisuje raport (`io.write_report`) - również po przerwaniu (Ctrl+C).

Stany jednej instancji:
    DISCOVERED -> RUNNING_SERIES -> SERIES_COMPLETE -> PROFILING_COMPLETE
               -> RENDERING_COMPLETE -> SUMMARIZED
Z każdego stanu można przejść do FAILED. Błąd jednej instancji (`BenchError`
albo `OSError`) trafia do `Report.failures` i nie zatrzymuje pozostałych.
Dwie instancje o tej samej etykiecie dzieliłyby katalogi wyników, więc druga
z nich od razu kończy jako FAILED (`DuplicateLabelError`).
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape

from .collector import collect, iter_artifacts
from .errors import BenchError, DuplicateLabelError, MalformedArtifactError, OutputWriteError, SubprocessFailure
from .instance import InstanceCase
from .io import iter_instance_files, prepare_output_dirs, write_report
from .model import AggregateRecord, BenchConfig, FailureRecord, Report
from .tools import ProfilerTool, RendererTool, SolverTool


class Stage(str, Enum):
    """Etap przetwarzania jednej instancji"""
    DISCOVERED = "discovered"
    RUNNING_SERIES = "running_series"
    SERIES_COMPLETE = "series_complete"
    PROFILING_COMPLETE = "profiling_complete"
    RENDERING_COMPLETE = "rendering_complete"
    SUMMARIZED = "summarized"
    FAILED = "failed"


@dataclass
class InstanceOutcome:
    """Co się stało z jedną instancją (do logów i testów)"""
    source: Path
    name: str
    stage: Stage = Stage.DISCOVERED
    failed_stage: Optional[Stage] = None
    failed_runs: int = 0
    record: Optional[AggregateRecord] = None
    failure: Optional[FailureRecord] = None



# --- Orkiestrator -------------------------------------------------------------------------------------
class BenchmarkOrchestrator:
    """Prowadzi cały benchmark dla korpusu instancji zgodnie z `BenchConfig`."""

    def __init__(
        self,
        config: BenchConfig,
        console: Optional[Console] = None,
        solver: Optional[SolverTool] = None,
        profiler: Optional[ProfilerTool] = None,
        renderer: Optional[RendererTool] = None,
    ):
        self.config = config
        self.console = console or Console()
        self.solver = solver or SolverTool(config.solver_cmd, config.repetitions, config.timeout_sec)
        self.profiler = profiler or ProfilerTool(config.profiler, self.solver)
        self.renderer = renderer or RendererTool(config.renderer, self.solver)
        self.outcomes: List[InstanceOutcome] = []
        self.report = Report(notes=config.notes)
        self.interrupted = False
        self.started = False
        self._labels: Dict[str, Path] = {}

    # -- ścieżki ---------------------------------------------------------------------------------
    def artifact_path(self, label: str, run_index: int) -> Path:
        """series/<label>/<i>.tour; i liczone od 1"""
        suffix = Path(self.config.artifact_glob).suffix or ".tour"
        return self.config.series_dir / label / f"{run_index}{suffix}"

    def profile_log_path(self, label: str) -> Path:
        return self.config.profile_dir / f"{label}.log"

    def image_path(self, label: str) -> Path:
        return self.config.map_dir / f"{label}{self.config.renderer.image_suffix}"

    # -- seria uruchomień ------------------------------------------------------------------------
    def _clear_series(self, series_dir: Path) -> None:
        """Usuń artefakty z poprzedniego przebiegu o tej samej nazwie."""
        for old in iter_artifacts(series_dir, self.config.artifact_glob):
            try:
                old.unlink()
            except OSError as e:
                raise OutputWriteError(old, e) from e

    def _run_one(self, instance: InstanceCase, run_index: int) -> Tuple[int, Optional[SubprocessFailure]]:
        try:
            self.solver.run(instance.source_path, self.artifact_path(instance.label, run_index), self.config.retries)
        except SubprocessFailure as e:
            # solver mógł zostawić niepełny artefakt - nie może trafić do serii
            self.artifact_path(instance.label, run_index).unlink(missing_ok=True)
            return run_index, e
        return run_index, None

    def run_series(self, instance: InstanceCase) -> int:
        """
        Uruchom solver N razy. Nieudany run to po prostu jedna próbka mniej.
        Zwraca liczbę nieudanych uruchomień.
        """
        n = self.config.runs
        series_dir = self.config.series_dir / instance.label
        try:
            series_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputWriteError(series_dir, e) from e
        self._clear_series(series_dir)

        failed = 0

        def report_run(run_index: int, error: Optional[SubprocessFailure]) -> None:
            nonlocal failed
            if error is None:
                self.console.print(f"  [[yellow]Run[/yellow]] [white]{run_index}/{n}[/white] [green]ok[/green]")
            else:
                failed += 1
                self.console.print(f"  [[yellow]Run[/yellow]] [white]{run_index}/{n}[/white] [red]failed[/red]: {escape(str(error))}")

        if self.config.jobs <= 1:
            for i in range(1, n + 1):
                report_run(*self._run_one(instance, i))
            return failed

        with ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
            futures = [pool.submit(self._run_one, instance, i) for i in range(1, n + 1)]
            try:
                for fut in as_completed(futures):
                    report_run(*fut.result())
            except BaseException:
                # nie startujemy kolejnych runów; trwające dokończy wyjście z `with`
                pool.shutdown(wait=False, cancel_futures=True)
                raise
        return failed

    # -- jedna instancja -------------------------------------------------------------------------
    def _warn_malformed(self, error: MalformedArtifactError) -> None:
        self.console.print(f"  [yellow][SKIP][/yellow] {escape(str(error))}")

    def _advance(self, outcome: InstanceOutcome, stage: Stage) -> None:
        outcome.stage = stage

    def _fail(self, outcome: InstanceOutcome, error: BaseException, reason: str = "") -> FailureRecord:
        outcome.failed_stage = outcome.stage
        outcome.stage = Stage.FAILED
        outcome.failure = FailureRecord(
            name=outcome.name,
            source=str(outcome.source),
            stage=outcome.failed_stage.value,
            error=type(error).__name__,
            reason=reason or str(error),
        )
        self.console.print(
            f"[[bold red]FAILED[/bold red]] [white]{escape(outcome.name)}[/white] "
            f"[cyan]({outcome.failed_stage.value})[/cyan]: {escape(outcome.failure.reason)}"
        )
        return outcome.failure

    def process_instance(self, source: Path) -> InstanceOutcome:
        """Przeprowadź jedną instancję przez wszystkie etapy; BenchError -> FAILED."""
        outcome = InstanceOutcome(source=Path(source), name=Path(source).stem)
        self.outcomes.append(outcome)
        try:
            instance = InstanceCase.from_file(source)
            outcome.name = instance.label
            first = self._labels.setdefault(instance.label, outcome.source)
            if first != outcome.source:
                raise DuplicateLabelError(outcome.source, instance.label, first)
            self.console.print(
                f"\n[bold green][START][/bold green] [[yellow]Instance[/yellow]: [white]{escape(instance.label)}[/white]] "
                f"[[yellow]Runs[/yellow]: [white]{self.config.runs}[/white]] "
                f"[[yellow]Repetitions[/yellow]: [white]{self.config.repetitions}[/white]]"
            )

            self._advance(outcome, Stage.RUNNING_SERIES)
            outcome.failed_runs = self.run_series(instance)
            collect(
                instance,
                self.config.series_dir,
                pattern=self.config.artifact_glob,
                skip_malformed=self.config.skip_malformed,
                on_malformed=self._warn_malformed,
            )
            self._advance(outcome, Stage.SERIES_COMPLETE)

            if self.config.profiler.enabled:
                self.profiler.run(instance.source_path, self.profile_log_path(instance.label))
            self._advance(outcome, Stage.PROFILING_COMPLETE)

            if self.config.renderer.enabled:
                self.renderer.run(instance.source_path, self.image_path(instance.label))
            self._advance(outcome, Stage.RENDERING_COMPLETE)

            outcome.record = instance.summarize()
            self._advance(outcome, Stage.SUMMARIZED)
        except (BenchError, OSError) as e:
            self._fail(outcome, e)
            return outcome

        rec = outcome.record
        self.console.print(
            f"[[bold green]DONE[/bold green]] [white]{escape(rec.name)}[/white]  "
            f"[bold green]distance[/bold green] = [white]{rec.distance.average:.2f} ± {rec.distance.std_dev:.2f}[/white]  "
            f"[bold green]time[/bold green] = [white]{rec.time.average:.4f}s ± {rec.time.std_dev:.4f}s[/white]  "
            f"[cyan](n={rec.runs})[/cyan]"
        )
        return outcome

    # -- cały korpus -----------------------------------------------------------------------------
    def run(self) -> Report:
        """
        Przetwórz wszystkie instancje i zwróć raport (jeszcze niezapisany).
        Raport rośnie w `self.report`, więc po nieoczekiwanym wyjątku nadal
        da się zapisać to, co już policzono.
        """
        prepare_output_dirs(self.config)
        self.started = True
        report = self.report

        files = iter_instance_files(self.config.tours_dir, self.config.instance_glob)
        self.console.print(f"[green]Znaleziono instancji:[/green] {len(files)}")

        for source in files:
            try:
                outcome = self.process_instance(source)
            except KeyboardInterrupt as e:
                self.interrupted = True
                if self.outcomes and self.outcomes[-1].source == Path(source):
                    outcome = self.outcomes[-1]
                else:
                    outcome = InstanceOutcome(source=Path(source), name=Path(source).stem)
                report.failures.append(self._fail(outcome, e, reason="interrupted"))
                self.console.print("[[red]STOPPED[/red]][white]: Przerwano - zapisuję dotychczasowe wyniki.[/white]")
                break

            if outcome.record is not None:
                report.results.append(outcome.record)
            elif outcome.failure is not None:
                report.failures.append(outcome.failure)

        return report

    def write(self, report: Report) -> Path:
        return write_report(report, self.config.report_path, self.config.report_format)



# --- Publiczny interfejs ------------------------------------------------------------------------------
def run_benchmark(config: BenchConfig, console: Optional[Console] = None) -> Tuple[Report, Path]:
    """Uruchom benchmark i zapisz raport; zwraca (raport, ścieżka raportu)."""
    orchestrator = BenchmarkOrchestrator(config, console=console)
    try:
        report = orchestrator.run()
    finally:
        if orchestrator.started:
            path = orchestrator.write(orchestrator.report)
    return report, path
