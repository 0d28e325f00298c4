"""
Plik: tspbench/tools.py

Cel i rola w projekcie
----------------------
Jawny interfejs do trzech narzędzi zewnętrznych uruchamianych jako procesy:
- `SolverTool`   - solver TSP; jedno wywołanie = jeden artefakt `<i>.tour`,
- `ProfilerTool` - profiler pamięci (domyślnie valgrind), raz na instancję,
  log trafia do `valgrind/<label>.log`,
- `RendererTool` - solver w trybie "print" przepięty potokiem do renderera
  (domyślnie `polygonfy`), wynik to `map/<label>.svg`.

Każde wywołanie zwraca `ProcessOutcome` albo rzuca `SubprocessFailure`
(brak programu, timeout, kod wyjścia != 0). Nic tu nie sprawdza poprawności
samego solvera - to robi `collector.py` na podstawie artefaktów.
"""
from __future__ import annotations

import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .errors import OutputWriteError, SubprocessFailure
from .model import ProfilerConfig, RendererConfig


LOG_PLACEHOLDER = "{log}"
IMAGE_PLACEHOLDER = "{image}"


@dataclass
class ProcessOutcome:
    """Wynik udanego wywołania procesu"""
    command: List[str]
    returncode: int
    elapsed_sec: float
    stdout: bytes = b""
    stderr: str = ""



# --- Pomocnicze -------------------------------------------------------------------------------------
def _decode(data: Optional[bytes]) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def _timeout(timeout_sec: float) -> Optional[float]:
    """0 w configu oznacza brak limitu."""
    return timeout_sec if timeout_sec and timeout_sec > 0 else None


def _write_output(path: Path, data: Union[str, bytes]) -> None:
    """Zapis pliku wynikowego; błąd systemu plików -> OutputWriteError."""
    try:
        if isinstance(data, bytes):
            path.write_bytes(data)
        else:
            path.write_text(data, encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(path, e) from e


def _fill(template: Sequence[str], placeholder: str, value: Union[str, Path]) -> List[str]:
    return [arg.replace(placeholder, str(value)) for arg in template]


def run_process(command: Sequence[str], timeout_sec: float = 0.0) -> ProcessOutcome:
    """Uruchom proces, przechwyć stdout/stderr i zamień każdą porażkę na SubprocessFailure."""
    cmd = [str(c) for c in command]
    t0 = time.perf_counter()
    try:
        proc = subprocess.run(cmd, capture_output=True, timeout=_timeout(timeout_sec))
    except subprocess.TimeoutExpired as e:
        raise SubprocessFailure(cmd, None, _decode(e.stderr), reason=f"przekroczono limit {timeout_sec}s") from e
    except OSError as e:
        raise SubprocessFailure(cmd, None, "", reason=f"nie można uruchomić: {e}") from e

    stderr = _decode(proc.stderr)
    if proc.returncode != 0:
        raise SubprocessFailure(cmd, proc.returncode, stderr)
    return ProcessOutcome(cmd, proc.returncode, time.perf_counter() - t0, proc.stdout or b"", stderr)



# --- Solver ------------------------------------------------------------------------------------------
class SolverTool:
    """Pojedyncze uruchomienia solvera: `<cmd> <instance> -o <artifact> -r <repetitions>`"""

    def __init__(self, solver_cmd: Sequence[str], repetitions: int, timeout_sec: float = 0.0):
        self.solver_cmd = list(solver_cmd)
        self.repetitions = repetitions
        self.timeout_sec = timeout_sec

    def base_command(self, instance_path: Union[str, Path]) -> List[str]:
        """Polecenie bez flag wyjścia: `<cmd> <instance> -r <repetitions>`"""
        return [*self.solver_cmd, str(instance_path), "-r", str(self.repetitions)]

    def command(self, instance_path: Union[str, Path], artifact_path: Union[str, Path]) -> List[str]:
        return [*self.solver_cmd, str(instance_path), "-o", str(artifact_path), "-r", str(self.repetitions)]

    def run(self, instance_path: Union[str, Path], artifact_path: Union[str, Path], retries: int = 0) -> ProcessOutcome:
        """Jedno uruchomienie serii; przy porażce ponawiamy najwyżej `retries` razy."""
        cmd = self.command(instance_path, artifact_path)
        attempt = 0
        while True:
            try:
                return run_process(cmd, self.timeout_sec)
            except SubprocessFailure:
                attempt += 1
                if attempt > retries:
                    raise



# --- Profiler ------------------------------------------------------------------------------------------
class ProfilerTool:
    """
    Profiler pamięci. Jeśli szablon polecenia zawiera `{log}` (np. valgrind
    `--log-file={log}`), narzędzie samo pisze log; w przeciwnym razie zapisujemy
    jego stderr dosłownie do pliku logu.
    """

    def __init__(self, config: ProfilerConfig, solver: SolverTool):
        self.config = config
        self.solver = solver

    def command(self, instance_path: Union[str, Path], log_path: Union[str, Path]) -> List[str]:
        prefix = _fill(self.config.command, LOG_PLACEHOLDER, log_path)
        return [*prefix, *self.solver.base_command(instance_path), *self.config.solver_flags]

    def run(self, instance_path: Union[str, Path], log_path: Union[str, Path]) -> ProcessOutcome:
        log = Path(log_path)
        outcome = run_process(self.command(instance_path, log), self.solver.timeout_sec)
        if not any(LOG_PLACEHOLDER in arg for arg in self.config.command):
            _write_output(log, outcome.stderr)
        return outcome



# --- Renderer ------------------------------------------------------------------------------------------
class RendererTool:
    """
    `<cmd> <instance> -r <repetitions> -f -p | polygonfy <image>`

    Jeśli szablon renderera nie zawiera `{image}`, obrazek to stdout renderera.
    """

    def __init__(self, config: RendererConfig, solver: SolverTool):
        self.config = config
        self.solver = solver

    def producer_command(self, instance_path: Union[str, Path]) -> List[str]:
        return [*self.solver.base_command(instance_path), *self.config.print_flags]

    def consumer_command(self, image_path: Union[str, Path]) -> List[str]:
        return _fill(self.config.command, IMAGE_PLACEHOLDER, image_path)

    def run(self, instance_path: Union[str, Path], image_path: Union[str, Path]) -> ProcessOutcome:
        producer_cmd = self.producer_command(instance_path)
        consumer_cmd = self.consumer_command(image_path)
        timeout = _timeout(self.solver.timeout_sec)
        t0 = time.perf_counter()
        deadline = None if timeout is None else time.monotonic() + timeout

        with tempfile.TemporaryFile() as producer_err:
            try:
                producer = subprocess.Popen(producer_cmd, stdout=subprocess.PIPE, stderr=producer_err)
            except OSError as e:
                raise SubprocessFailure(producer_cmd, None, "", reason=f"nie można uruchomić: {e}") from e
            try:
                consumer = subprocess.Popen(
                    consumer_cmd, stdin=producer.stdout, stdout=subprocess.PIPE, stderr=subprocess.PIPE
                )
            except OSError as e:
                producer.kill()
                producer.wait()
                raise SubprocessFailure(consumer_cmd, None, "", reason=f"nie można uruchomić: {e}") from e
            finally:
                # consumer ma własną kopię deskryptora; producent dostanie SIGPIPE gdy consumer padnie
                if producer.stdout is not None:
                    producer.stdout.close()

            try:
                out, err = consumer.communicate(timeout=timeout)
                # jeden wspólny limit czasu dla obu procesów potoku
                producer.wait(timeout=None if deadline is None else max(0.0, deadline - time.monotonic()))
            except subprocess.TimeoutExpired as e:
                consumer.kill()
                producer.kill()
                consumer.wait()
                producer.wait()
                raise SubprocessFailure(producer_cmd + ["|"] + consumer_cmd, None, "",
                                        reason=f"przekroczono limit {self.solver.timeout_sec}s") from e

            producer_err.seek(0)
            producer_stderr = _decode(producer_err.read())

        consumer_stderr = _decode(err)
        if consumer.returncode != 0:
            raise SubprocessFailure(consumer_cmd, consumer.returncode, consumer_stderr)
        if producer.returncode != 0:
            raise SubprocessFailure(producer_cmd, producer.returncode, producer_stderr)

        if not any(IMAGE_PLACEHOLDER in arg for arg in self.config.command):
            _write_output(Path(image_path), out or b"")

        return ProcessOutcome(consumer_cmd, consumer.returncode, time.perf_counter() - t0, out or b"", consumer_stderr)
