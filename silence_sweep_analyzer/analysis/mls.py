"""Impulse-response extraction from periodic maximal-length-sequence excitation.

For a bipolar MLS ``s`` of period ``L`` the circular autocorrelation is
``L`` at lag 0 and ``-1`` elsewhere.  The circular cross-correlation of one
(synchronously averaged) response period with ``s`` therefore equals
``(L+1)*h - sum(h)``, which is inverted exactly here.
"""

from __future__ import annotations

from functools import lru_cache

import numpy as np
from scipy.signal import max_len_seq


@lru_cache(maxsize=16)
def _mls_cached(order: int) -> np.ndarray:
    seq, _ = max_len_seq(order)
    out = 1.0 - 2.0 * seq.astype(float)
    out.flags.writeable = False
    return out


def mls_sequence(order: int) -> np.ndarray:
    """Bipolar (+1/-1) maximal-length sequence of period ``2**order - 1``."""
    n = int(order)
    if n != order or n < 2:
        raise ValueError(f"MLS order must be an integer >= 2, got {order}")
    return _mls_cached(n)


def synchronous_average(segment: np.ndarray, period: int, n_cycles: int) -> np.ndarray:
    """Mean over ``n_cycles`` consecutive periods along axis 0."""
    x = np.asarray(segment, dtype=float)
    L = int(period)
    n = int(n_cycles)
    if n < 1:
        raise ValueError(f"n_cycles must be >= 1, got {n_cycles}")
    if x.shape[0] < n * L:
        raise ValueError(f"Segment of {x.shape[0]} samples holds fewer than {n} periods of {L}")
    return np.mean(x[: n * L].reshape((n, L) + x.shape[1:]), axis=0)


def mls_impulse_response(segment: np.ndarray, order: int, n_cycles: int) -> np.ndarray:
    """Impulse response (one MLS period long) of a cycle-aligned MLS response.

    Parameters
    ----------
    segment:
        Response to ``n_cycles`` MLS periods, starting on a period boundary;
        time on axis 0.
    order:
        MLS order.
    n_cycles:
        Number of periods averaged before correlation.

    Returns
    -------
    np.ndarray
        Shape ``(L, ...)``; index 0 is zero delay.
    """
    seq = mls_sequence(order)
    L = seq.size
    y = synchronous_average(segment, L, n_cycles)

    S = np.conj(np.fft.fft(seq)).reshape((-1,) + (1,) * (y.ndim - 1))
    corr = np.real(np.fft.ifft(np.fft.fft(y, axis=0) * S, axis=0))
    return (corr + np.sum(corr, axis=0, keepdims=True)) / float(L + 1)
