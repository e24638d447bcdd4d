from __future__ import annotations

# ---------------------------
# Optional Numba (JIT) support
# ---------------------------
try:
    from numba import njit  # type: ignore
    _NUMBA = True
except ImportError:  # pragma: no cover
    _NUMBA = False


def _maybe_njit(func):
    # Decorate with njit if available; else return original.
    # fastmath stays off so compiled passes reproduce the interpreted arithmetic.
    if _NUMBA:  # pragma: no cover
        return njit(cache=True, fastmath=False, nogil=True)(func)  # type: ignore[misc]
    return func


def numba_available() -> bool:
    return _NUMBA
