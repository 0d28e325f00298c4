"""
Plik: tspbench/errors.py

Cel i rola w projekcie
----------------------
Jedno miejsce z hierarchią wyjątków całego harnessu. Każdy błąd, który może
"zabić" pojedynczą instancję benchmarku, dziedziczy po `BenchError`:
- orkiestrator (`runner.py`) łapie `BenchError` (i `OSError`) na granicy instancji,
  oznacza instancję jako FAILED i przechodzi do kolejnej,
- wszystko inne (np. `TypeError`) to błąd programisty i leci dalej.

Jak łączy się z resztą:
- `stats.py` rzuca `EmptyInputError` / `InsufficientSamplesError`,
- `instance.py` rzuca `MissingLabelError`, `runner.py` - `DuplicateLabelError`,
- `collector.py` rzuca `NoArtifactsFoundError`, `ArtifactReadError`, `MalformedArtifactError`,
- `tools.py` rzuca `SubprocessFailure` i `OutputWriteError`.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union


class BenchError(Exception):
    """Bazowy błąd harnessu - zawsze dotyczy jednej instancji."""


# --- Statystyka -----------------------------------------------------------------------------------
class EmptyInputError(BenchError, ValueError):
    """Średnia z pustej listy próbek."""


class InsufficientSamplesError(BenchError, ValueError):
    """Odchylenie standardowe z próby wymaga co najmniej 2 próbek."""

    def __init__(self, count: int, required: int = 2):
        self.count = count
        self.required = required
        super().__init__(f"Potrzeba co najmniej {required} próbek, otrzymano {count}")



# --- Instancje i artefakty ------------------------------------------------------------------------
class MissingLabelError(BenchError):
    """Plik instancji nie ma poprawnego pola NAME w nagłówku."""

    def __init__(self, path: Union[str, Path], detail: str = "brak linii NAME: w pliku"):
        self.path = Path(path)
        super().__init__(f"{self.path}: {detail}")


class DuplicateLabelError(BenchError):
    """Dwa pliki instancji mają tę samą etykietę (dzieliłyby katalogi wyników)."""

    def __init__(self, path: Union[str, Path], label: str, first: Union[str, Path]):
        self.path = Path(path)
        self.label = label
        self.first = Path(first)
        super().__init__(f"{self.path}: etykieta {label!r} jest już użyta przez {self.first}")


class OutputWriteError(BenchError):
    """Nie da się utworzyć katalogu / zapisać pliku wynikowego instancji."""

    def __init__(self, path: Union[str, Path], cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Nie można zapisać {self.path}: {cause}")


class NoArtifactsFoundError(BenchError):
    """Katalog serii nie zawiera żadnego artefaktu dla instancji."""

    def __init__(self, directory: Union[str, Path], pattern: str):
        self.directory = Path(directory)
        self.pattern = pattern
        super().__init__(f"Brak artefaktów '{pattern}' w {self.directory}")


class ArtifactReadError(BenchError):
    """Nie da się otworzyć / odczytać pliku (instancji lub artefaktu)."""

    def __init__(self, path: Union[str, Path], cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Nie można odczytać {self.path}: {cause}")


class MalformedArtifactError(BenchError):
    """Artefakt nie daje dokładnie jednej pary (DISTANCE, TIME)."""

    def __init__(self, path: Union[str, Path], detail: str):
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"{self.path}: {detail}")



# --- Procesy zewnętrzne ---------------------------------------------------------------------------
class SubprocessFailure(BenchError):
    """Proces zewnętrzny nie wystartował, przekroczył czas lub zwrócił kod != 0."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
        reason: str = "",
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        if not reason:
            reason = f"kod wyjścia {returncode}"
        msg = f"{' '.join(self.command)}: {reason}"
        tail = stderr.strip().splitlines()[-1:] if stderr else []
        if tail:
            msg += f" ({tail[0]})"
        super().__init__(msg)
