"""
Plik: tspbench/fields.py

Cel i rola w projekcie
----------------------
Mały, jawny parser linii w formacie `POLE: wartość`, wspólny dla:
- nagłówka pliku instancji TSPLIB (`NAME : berlin52`),
- artefaktów z pojedynczego uruchomienia solvera (`DISTANCE: 7542`, `TIME: 0.0213`).

Gramatyka jednej linii:
    linia   := ws* NAZWA ws* ':' ws* WARTOŚĆ (ws+ reszta)?
    NAZWA   := [A-Za-z_][A-Za-z0-9_]*
    WARTOŚĆ := pierwszy token bez białych znaków

Linie, które nie pasują (sekcje współrzędnych, `EOF`, puste) są pomijane.
Dzięki temu "jak wygląda poprawny artefakt" jest zdefiniowane tylko tutaj.
"""
from __future__ import annotations

import re
from typing import Iterable, Iterator, NamedTuple, Optional, Set


_FIELD_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*:\s*(\S+)")


class Field(NamedTuple):
    """Jedno dopasowane pole: nazwa, wartość (pierwszy token) i numer linii (od 1)."""
    name: str
    value: str
    line_no: int


def parse_line(line: str, line_no: int = 0) -> Optional[Field]:
    """Zwróć `Field` dla linii `NAZWA: wartość` albo None."""
    m = _FIELD_RE.match(line)
    if m is None:
        return None
    return Field(m.group(1), m.group(2), line_no)


def iter_fields(lines: Iterable[str], names: Optional[Iterable[str]] = None) -> Iterator[Field]:
    """
    Iteruj po polach w kolejności występowania.
    Jeśli podano `names`, zwracamy tylko pola o tych nazwach.
    """
    wanted: Optional[Set[str]] = set(names) if names is not None else None
    for i, line in enumerate(lines, start=1):
        field = parse_line(line, i)
        if field is None:
            continue
        if wanted is not None and field.name not in wanted:
            continue
        yield field


def first_field(lines: Iterable[str], name: str) -> Optional[Field]:
    """Pierwsze wystąpienie pola `name` (przerywa czytanie zaraz po znalezieniu)."""
    for field in iter_fields(lines, (name,)):
        return field
    return None
