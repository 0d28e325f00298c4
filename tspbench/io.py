"""
Plik: tspbench/io.py

Cel i rola w projekcie
----------------------
Ten moduł odpowiada za *wszystkie operacje wejścia/wyjścia* poza procesami:
- wczytywanie pliku konfiguracyjnego JSON (orjson),
- wyszukiwanie plików instancji (`tours/*.tsp`),
- tworzenie struktury katalogów przebiegu (output/<name>/{series,valgrind,map}),
- zapis raportu końcowego jako YAML (domyślnie, `results.yml`) albo JSON.

Jak łączy się z resztą:
- `cli.py` woła `read_json` i `iter_instance_files` (dry-run),
- `runner.py` woła `prepare_output_dirs`, `iter_instance_files`, `write_report`.

Uwagi:
- Raport zapisujemy do pliku tymczasowego i podmieniamy (`replace`), żeby
  przerwany zapis nie zostawił uciętego `results.yml`.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import orjson
import yaml

from .model import BenchConfig, Report



# -- JSON utils -------------------------------------------------------------------------------------
def _loads(s: Union[str, bytes]) -> Dict:
    """Parse JSON string/bytes -> dict"""
    return orjson.loads(s)

def _dumps(obj: Any) -> str:
    """Dump obiekt -> JSON (wcięcia 2 spacje, UTF-8 bez escapowania)."""
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2).decode("utf-8")


def read_json(path: Union[str, Path]) -> Dict:
    """Wczytuje plik JSON i zwraca jego zawartość jako słownik."""
    p = Path(path)
    return _loads(p.read_bytes())



# -- Instancje i katalogi ---------------------------------------------------------------------------
def iter_instance_files(tours_dir: Union[str, Path], pattern: str = "*.tsp") -> List[Path]:
    """Pliki instancji w stałej (alfabetycznej) kolejności - to kolejność w raporcie."""
    d = Path(tours_dir)
    if not d.is_dir():
        raise FileNotFoundError(f"Katalog instancji nie istnieje: {d}")
    return sorted(p for p in d.glob(pattern) if p.is_file())


def ensure_dirs(*paths: Union[str, Path]) -> None:
    """Utwórz katalogi (łącznie z rodzicami), jeśli jeszcze nie istnieją."""
    for p in paths:
        Path(p).mkdir(parents=True, exist_ok=True)


def prepare_output_dirs(config: BenchConfig) -> None:
    """Struktura przebiegu: output/<name>/{series,valgrind,map}"""
    ensure_dirs(config.output_dir, config.series_dir, config.profile_dir, config.map_dir)



# -- Raport -----------------------------------------------------------------------------------------
def report_to_dict(report: Report) -> Dict[str, Any]:
    """Raport jako zwykły słownik (kolejność kluczy jak w modelu)."""
    return report.model_dump(mode="json")


def dump_report(report: Report, fmt: str = "yaml") -> str:
    """Zserializuj raport do tekstu YAML lub JSON."""
    data = report_to_dict(report)
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    if fmt == "json":
        return _dumps(data) + "\n"
    raise ValueError(f"Nieobsługiwany format raportu: {fmt}. Obsługiwane: yaml, json")


def write_report(report: Report, out_path: Union[str, Path], fmt: Optional[str] = None) -> Path:
    """
    Zapisz raport do pliku. Format wynika z `fmt` albo z rozszerzenia
    (.json -> JSON, wszystko inne -> YAML).
    """
    p = Path(out_path)
    if fmt is None:
        fmt = "json" if p.suffix == ".json" else "yaml"
    text = dump_report(report, fmt)

    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_name(p.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    tmp.replace(p)
    return p


def read_report(path: Union[str, Path]) -> Report:
    """Wczytaj wcześniej zapisany raport (YAML lub JSON)."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    data = _loads(text) if p.suffix == ".json" else yaml.safe_load(text)
    return Report.model_validate(data or {})
