"""
Plik: tspbench/stats.py

Cel i rola w projekcie
----------------------
Czysta "matematyka" agregacji wyników serii uruchomień:
- średnia arytmetyczna próbek,
- odchylenie standardowe z próby (z poprawką Bessela, dzielimy przez N-1).

Założenia:
- liczymy w float64 (NumPy), bez dodatkowego zaokrąglania,
- funkcje są czyste: nie modyfikują wejścia i nie robią I/O,
- przypadki brzegowe (0 lub 1 próbka) kończą się wyjątkiem, a nie NaN/0.
"""
from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from .errors import EmptyInputError, InsufficientSamplesError
from .model import SampleStats


Number = Union[int, float]


def _as_array(samples: Sequence[Number]) -> np.ndarray:
    """Zamień sekwencję liczb na wektor float64 (n,)"""
    return np.asarray(list(samples), dtype=np.float64).reshape(-1)


def mean(samples: Sequence[Number]) -> float:
    """Średnia arytmetyczna: sum / count."""
    x = _as_array(samples)
    if x.size == 0:
        raise EmptyInputError("Średnia z pustej listy próbek jest niezdefiniowana")
    return float(np.sum(x) / x.size)


def sample_std_dev(samples: Sequence[Number]) -> float:
    """
    Odchylenie standardowe z próby:
        sqrt( sum((x - mean)^2) / (count - 1) )

    Dla count < 2 mianownik byłby zerem - rzucamy InsufficientSamplesError.
    """
    x = _as_array(samples)
    if x.size < 2:
        raise InsufficientSamplesError(int(x.size))
    return float(np.std(x, ddof=1))


def summarize_samples(samples: Sequence[Number]) -> SampleStats:
    """Policz (average, std_dev) za jednym razem."""
    return SampleStats(average=mean(samples), std_dev=sample_std_dev(samples))
