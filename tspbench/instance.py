"""
Plik: tspbench/instance.py

Cel i rola w projekcie
----------------------
`InstanceCase` reprezentuje jedną instancję problemu (jeden plik *.tsp) w trakcie
benchmarku:
- przy konstrukcji czyta nagłówek pliku i ustala `label` (pole `NAME:`),
- gromadzi pary (distance, time) z kolejnych uruchomień solvera,
- na końcu liczy statystyki (`summarize`) przez `stats.py`.

Założenia:
- `label` trafia do ścieżek (series/<label>/, valgrind/<label>.log), więc musi być
  niepusty i być pojedynczym składnikiem ścieżki - inaczej `MissingLabelError`,
- obserwacje zapisujemy tylko parami, więc `distances` i `times` zawsze mają
  tę samą długość i są wyrównane indeksami.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, NamedTuple, Tuple, Union

from .errors import ArtifactReadError, MissingLabelError
from .fields import first_field
from .model import AggregateRecord
from .stats import summarize_samples


LABEL_FIELD = "NAME"


class RunObservation(NamedTuple):
    """Wynik jednego uruchomienia solvera"""
    distance: int
    time: float


def read_label(path: Union[str, Path]) -> str:
    """Wczytaj pierwszą linię `NAME: <label>` z pliku instancji."""
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            field = first_field(f, LABEL_FIELD)
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactReadError(p, e) from e

    if field is None:
        raise MissingLabelError(p)
    label = field.value
    if label in (".", "..") or "/" in label or "\\" in label:
        raise MissingLabelError(p, f"etykieta {label!r} nie może być nazwą katalogu")
    return label


class InstanceCase:
    """Jedna instancja pod benchmarkiem: etykieta + zebrane obserwacje."""

    def __init__(self, source_path: Union[str, Path], label: str):
        if not label:
            raise MissingLabelError(source_path, "pusta etykieta")
        self._source_path = Path(source_path)
        self._label = label
        self._observations: List[RunObservation] = []

    @classmethod
    def from_file(cls, source_path: Union[str, Path]) -> "InstanceCase":
        """Zbuduj instancję na podstawie nagłówka pliku."""
        return cls(source_path, read_label(source_path))

    def __repr__(self) -> str:
        return f"InstanceCase(label={self._label!r}, source={str(self._source_path)!r}, runs={len(self)})"

    def __len__(self) -> int:
        return len(self._observations)

    @property
    def source_path(self) -> Path:
        return self._source_path

    @property
    def label(self) -> str:
        return self._label

    @property
    def observations(self) -> Tuple[RunObservation, ...]:
        return tuple(self._observations)

    @property
    def distances(self) -> List[int]:
        return [o.distance for o in self._observations]

    @property
    def times(self) -> List[float]:
        return [o.time for o in self._observations]

    def record_run(self, distance: int, time: float) -> None:
        """Dopisz jedną obserwację (para distance/time)."""
        self._observations.append(RunObservation(int(distance), float(time)))

    def summarize(self) -> AggregateRecord:
        """
        Policz średnią i odchylenie z próby dla dystansu i czasu.
        Mniej niż 2 obserwacje -> EmptyInputError / InsufficientSamplesError
        (nie raportujemy zer ani NaN).
        """
        distance = summarize_samples(self.distances)
        time = summarize_samples(self.times)
        return AggregateRecord(name=self._label, runs=len(self), distance=distance, time=time)
