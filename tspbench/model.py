"""
Plik: tspbench/model.py

Cel i rola w projekcie
----------------------
Zawiera *modele danych* (Pydantic v2) używane w całym projekcie:
- `SampleStats`, `AggregateRecord`, `FailureRecord`, `Report` - struktura raportu
  końcowego (`results.yml`), budowana przez orkiestrator,
- `BenchConfig` i pomocnicze konfiguracje (`ProfilerConfig`, `RendererConfig`) -
  wszystkie parametry jednego uruchomienia harnessu w *jednym, walidowanym miejscu*.

Jak łączy się z resztą:
- `stats.py` i `instance.py` zwracają `SampleStats` / `AggregateRecord`,
- `cli.py` buduje `BenchConfig` z pliku JSON + argumentów linii poleceń,
- `runner.py` czyta `BenchConfig` i wypełnia `Report`,
- `io.py` serializuje `Report` do YAML/JSON.

Powiązanie z projektem:
- Klucze raportu (`notes`, `results`, `name`, `distance`, `time`, `average`,
  `std_dev`) są kontraktem dla skryptów, które później czytają wyniki.
- Dzięki Pydantic `runs < 2` (odchylenie z próby niezdefiniowane) jest odrzucane
  zanim wystartuje jakikolwiek proces.
"""
from __future__ import annotations

import shlex
from pathlib import Path
from typing import List, Literal

from pydantic import BaseModel, Field, field_validator


DEFAULT_NOTES = "Add notes here..."



# --- Modele raportu ---------------------------------------------------------------------------
class SampleStats(BaseModel):
    """Średnia i odchylenie standardowe z próby dla jednej wielkości"""
    average: float
    std_dev: float


class AggregateRecord(BaseModel):
    """Zagregowane wyniki jednej instancji (jeden wpis w `results`)"""
    name: str
    runs: int = Field(ge=2, description="Liczba uruchomień, z których liczono statystyki")
    distance: SampleStats
    time: SampleStats


class FailureRecord(BaseModel):
    """Instancja, której nie udało się podsumować (wpis w `failures`)"""
    name: str
    source: str
    stage: str
    error: str
    reason: str


class Report(BaseModel):
    """Dokument wynikowy całego benchmarku"""
    notes: str = DEFAULT_NOTES
    results: List[AggregateRecord] = Field(default_factory=list)
    failures: List[FailureRecord] = Field(default_factory=list)



# --- Konfiguracja narzędzi zewnętrznych ------------------------------------------------------
class ProfilerConfig(BaseModel):
    """Profiler pamięci uruchamiany raz na instancję (domyślnie valgrind)"""
    enabled: bool = True
    command: List[str] = Field(
        default_factory=lambda: ["valgrind", "--log-file={log}"],
        description="Prefiks polecenia; `{log}` zostanie zastąpione ścieżką logu",
    )
    solver_flags: List[str] = Field(default_factory=lambda: ["-f"])


class RendererConfig(BaseModel):
    """Renderer trasy do obrazka - dostaje wyjście solvera na stdin"""
    enabled: bool = True
    command: List[str] = Field(
        default_factory=lambda: ["polygonfy", "{image}"],
        description="Polecenie renderera; `{image}` zostanie zastąpione ścieżką obrazka",
    )
    print_flags: List[str] = Field(default_factory=lambda: ["-f", "-p"])
    image_suffix: str = ".svg"



# --- Konfiguracja benchmarku --------------------------------------------------------------------
class BenchConfig(BaseModel):
    """Główny zbiór parametrów jednego uruchomienia harnessu"""
    solver_cmd: List[str] = Field(..., min_length=1, description="Polecenie solvera (może zawierać własne flagi)")
    repetitions: int = Field(..., ge=1, description="Wartość przekazywana solverowi przez `-r`")
    output_name: str = Field(..., description="Identyfikator przebiegu -> katalog output/<name>")

    runs: int = Field(30, ge=2, description="Liczba uruchomień solvera na instancję (N)")
    jobs: int = Field(1, ge=1, description="Ile uruchomień serii równolegle")
    retries: int = Field(0, ge=0)
    timeout_sec: float = Field(0.0, ge=0.0, description="0 = bez limitu")

    tours_dir: Path = Path("tours")
    instance_glob: str = "*.tsp"
    output_root: Path = Path("output")
    artifact_glob: str = "*.tour"

    report_format: Literal["yaml", "json"] = "yaml"
    skip_malformed: bool = False
    notes: str = DEFAULT_NOTES

    profiler: ProfilerConfig = Field(default_factory=ProfilerConfig)
    renderer: RendererConfig = Field(default_factory=RendererConfig)

    @field_validator("solver_cmd", mode="before")
    @classmethod
    def _split_solver_cmd(cls, v):
        """Dopuszczamy napis ("./tsp --fast") albo gotową listę argumentów."""
        if isinstance(v, str):
            return shlex.split(v)
        return v

    @field_validator("output_name")
    @classmethod
    def _validate_output_name(cls, v: str):
        """Nazwa przebiegu to jeden składnik ścieżki."""
        v = v.strip()
        if not v or v in (".", "..") or "/" in v or "\\" in v:
            raise ValueError("output_name musi być niepustą nazwą katalogu (bez '/')")
        return v

    @property
    def output_dir(self) -> Path:
        """Katalog przebiegu: output/<output_name>"""
        return self.output_root / self.output_name

    @property
    def series_dir(self) -> Path:
        return self.output_dir / "series"

    @property
    def profile_dir(self) -> Path:
        return self.output_dir / "valgrind"

    @property
    def map_dir(self) -> Path:
        return self.output_dir / "map"

    @property
    def report_path(self) -> Path:
        """Ścieżka raportu: results.yml albo results.json"""
        suffix = ".yml" if self.report_format == "yaml" else ".json"
        return self.output_dir / f"results{suffix}"
