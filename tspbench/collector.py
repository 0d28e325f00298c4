"""
Plik: tspbench/collector.py

Cel i rola w projekcie
----------------------
Zbieranie wyników serii uruchomień jednej instancji:
- znajduje artefakty `series/<label>/*.tour` (wzorzec konfigurowalny),
- każdy artefakt parsuje na *dokładnie jedną* parę (DISTANCE, TIME),
- dopisuje pary do `InstanceCase` i zwraca wypełnioną instancję.

Polityka dla uszkodzonych artefaktów:
- brak jednego z pól, nieparsowalna wartość albo sprzeczne powtórzenie pola
  -> `MalformedArtifactError` (domyślnie przerywa zbieranie dla instancji),
- z `skip_malformed=True` taki artefakt jest pomijany (wywołujemy `on_malformed`),
  ale nigdy nie zapisujemy "połowy" pary.
"""
from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .errors import ArtifactReadError, MalformedArtifactError, NoArtifactsFoundError
from .fields import iter_fields
from .instance import InstanceCase, RunObservation


DISTANCE_FIELD = "DISTANCE"
TIME_FIELD = "TIME"
DEFAULT_PATTERN = "*.tour"

_DIGITS_RE = re.compile(r"(\d+)")



# --- Wyszukiwanie artefaktów ------------------------------------------------------------------------
def _natural_key(path: Path):
    """Klucz sortowania '2.tour' < '10.tour'."""
    parts = _DIGITS_RE.split(path.name)
    return [(0, int(p), "") if p.isdigit() else (1, 0, p) for p in parts]


def iter_artifacts(directory: Union[str, Path], pattern: str = DEFAULT_PATTERN) -> List[Path]:
    """Zwróć pliki artefaktów w katalogu serii, posortowane po numerze uruchomienia."""
    d = Path(directory)
    if not d.is_dir():
        return []
    return sorted((p for p in d.glob(pattern) if p.is_file()), key=_natural_key)



# --- Parsowanie pojedynczego artefaktu -----------------------------------------------------------------
def _parse_distance(path: Path, raw: str) -> int:
    """Solver pisze `DISTANCE: %.2f`; część ułamkową obcinamy (jak `to_i`)."""
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        value = float(raw)
    except ValueError:
        raise MalformedArtifactError(path, f"{DISTANCE_FIELD} nie jest liczbą: {raw!r}") from None
    if not math.isfinite(value):
        raise MalformedArtifactError(path, f"{DISTANCE_FIELD} musi być skończone: {raw!r}")
    return int(value)


def _parse_time(path: Path, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise MalformedArtifactError(path, f"{TIME_FIELD} nie jest liczbą: {raw!r}") from None
    if not math.isfinite(value):
        raise MalformedArtifactError(path, f"{TIME_FIELD} musi być skończone: {raw!r}")
    return value


def parse_artifact(path: Union[str, Path]) -> RunObservation:
    """Wczytaj artefakt i zwróć jedną obserwację (distance, time)."""
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            found: Dict[str, str] = {}
            for field in iter_fields(f, (DISTANCE_FIELD, TIME_FIELD)):
                prev = found.get(field.name)
                if prev is not None and prev != field.value:
                    raise MalformedArtifactError(
                        p, f"pole {field.name} powtórzone z inną wartością (linia {field.line_no})"
                    )
                found[field.name] = field.value
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactReadError(p, e) from e

    missing = [name for name in (DISTANCE_FIELD, TIME_FIELD) if name not in found]
    if missing:
        raise MalformedArtifactError(p, f"brak pola {', '.join(missing)}")

    return RunObservation(
        distance=_parse_distance(p, found[DISTANCE_FIELD]),
        time=_parse_time(p, found[TIME_FIELD]),
    )



# --- Publiczny interfejs -----------------------------------------------------------------------------
def collect(
    instance: InstanceCase,
    series_dir: Union[str, Path],
    pattern: str = DEFAULT_PATTERN,
    skip_malformed: bool = False,
    on_malformed: Optional[Callable[[MalformedArtifactError], None]] = None,
) -> InstanceCase:
    """
    Wypełnij `instance` obserwacjami z katalogu `series_dir/<label>/`.

    Rzuca:
     - NoArtifactsFoundError - katalog nie istnieje albo nie ma w nim artefaktów,
     - ArtifactReadError - pliku nie da się odczytać,
     - MalformedArtifactError - artefakt nie daje pary (gdy skip_malformed=False).
    """
    directory = Path(series_dir) / instance.label
    artifacts = iter_artifacts(directory, pattern)
    if not artifacts:
        raise NoArtifactsFoundError(directory, pattern)

    for path in artifacts:
        try:
            obs = parse_artifact(path)
        except MalformedArtifactError as e:
            if not skip_malformed:
                raise
            if on_malformed is not None:
                on_malformed(e)
            continue
        instance.record_run(obs.distance, obs.time)

    return instance
