# nmr_engine/processing/spline.py
import logging; log = logging.getLogger(__name__)
from typing import List, Optional, Union
import numpy as np; import pandas as pd
from scipy.linalg import solve_banded
from ..core._exceptions import ValidationError

ArrayLike = Union[float, np.ndarray, List[float]]

# Root finder tuning
CROSSING_SAMPLES = 1000
BISECTION_MAX_ITER = 50
BISECTION_F_TOL = 1e-8
BISECTION_X_TOL = 1e-10


class CubicSpline:
    """
    Natural cubic spline through a set of samples.

    Piece i is valid on [x_i, x_{i+1}] and reads
    S_i(x) = y_i + b_i*dx + c_i*dx**2 + d_i*dx**3 with dx = x - x_i.
    The second derivative is zero at both end nodes. Queries made before
    compute() succeeds return zero instead of raising; check is_computed.
    """

    def __init__(self, x: Optional[ArrayLike] = None, y: Optional[ArrayLike] = None):
        self._x: Optional[np.ndarray] = None; self._y: Optional[np.ndarray] = None
        self._b: Optional[np.ndarray] = None; self._c: Optional[np.ndarray] = None; self._d: Optional[np.ndarray] = None
        self._computed = False
        if x is not None or y is not None:
            self.compute(x, y)

    @property
    def is_computed(self) -> bool: return self._computed
    @property
    def num_nodes(self) -> int: return 0 if self._x is None else len(self._x)
    @property
    def nodes(self) -> Optional[np.ndarray]:
        if self._x is None: return None
        view = self._x.view(); view.flags.writeable = False; return view
    @property
    def x_range(self) -> Optional[tuple]:
        if not self._computed: return None
        return float(self._x[0]), float(self._x[-1])

    @property
    def coefficients(self) -> pd.DataFrame:
        """Per-interval coefficients, one row per piece."""
        if not self._computed: return pd.DataFrame(columns=['x_start', 'x_end', 'a', 'b', 'c', 'd'])
        return pd.DataFrame({'x_start': self._x[:-1], 'x_end': self._x[1:], 'a': self._y[:-1],
                             'b': self._b, 'c': self._c, 'd': self._d})

    def compute(self, x: ArrayLike, y: ArrayLike) -> 'CubicSpline':
        """
        Fits the spline to (x, y).

        Raises ValidationError on size mismatch, fewer than two points,
        non-finite values or x that is not strictly increasing. A failed
        call leaves the previous state of the model untouched.
        """
        if x is None or y is None: raise ValidationError("Spline requires both x and y samples.")
        x_arr = np.array(x, dtype=float).ravel(); y_arr = np.array(y, dtype=float).ravel()
        n = len(x_arr)
        if n != len(y_arr): raise ValidationError(f"Spline x/y size mismatch ({n} vs {len(y_arr)}).")
        if n < 2: raise ValidationError(f"Spline requires at least 2 points, got {n}.")
        if not (np.all(np.isfinite(x_arr)) and np.all(np.isfinite(y_arr))): raise ValidationError("Spline samples contain non-finite values.")
        h = np.diff(x_arr)
        if np.any(h <= 0):
            bad = int(np.argmax(h <= 0))
            raise ValidationError(f"x values must be strictly increasing (x[{bad}]={x_arr[bad]}, x[{bad + 1}]={x_arr[bad + 1]}).")

        log.debug(f"Computing natural cubic spline for {n} points.")
        slopes = np.diff(y_arr) / h
        M = np.zeros(n)
        if n > 2:
            # Interior second derivatives M_1..M_{n-2}; M_0 = M_{n-1} = 0
            m = n - 2
            ab = np.zeros((3, m))
            ab[0, 1:] = h[1:m]
            ab[1, :] = 2.0 * (h[:m] + h[1:m + 1])
            ab[2, :-1] = h[1:m]
            rhs = 6.0 * np.diff(slopes)
            try: M[1:-1] = solve_banded((1, 1), ab, rhs)
            except (np.linalg.LinAlgError, ValueError) as e: raise ValidationError(f"Tridiagonal solve failed: {e}") from e
            log.debug(f"Tridiagonal system solved ({m} unknowns).")
        else:
            log.debug("Two points: spline reduces to linear interpolation.")

        b = slopes - h * (2.0 * M[:-1] + M[1:]) / 6.0
        c = M[:-1] / 2.0
        d = np.diff(M) / (6.0 * h)

        # Swap state in one step so a failure above never leaves a half-built model
        self._x, self._y, self._b, self._c, self._d = x_arr, y_arr, b, c, d
        self._computed = True
        log.info(f"Spline computed: {n} nodes, {n - 1} intervals.")
        return self

    def _locate(self, xv: np.ndarray) -> np.ndarray:
        idx = np.searchsorted(self._x, xv, side='right') - 1
        return np.clip(idx, 0, len(self._x) - 2)

    def _prepare(self, xv: ArrayLike):
        xa = np.asarray(xv, dtype=float)
        i = self._locate(xa)
        return xa, i, xa - self._x[i]

    @staticmethod
    def _neutral(xv: ArrayLike) -> Union[float, np.ndarray]:
        return 0.0 if np.ndim(xv) == 0 else np.zeros(np.shape(xv))

    @staticmethod
    def _result(xv: ArrayLike, values: np.ndarray) -> Union[float, np.ndarray]:
        return float(values) if np.ndim(xv) == 0 else values

    def evaluate(self, xv: ArrayLike) -> Union[float, np.ndarray]:
        if not self._computed: return self._neutral(xv)
        _, i, dx = self._prepare(xv)
        return self._result(xv, self._y[i] + dx * (self._b[i] + dx * (self._c[i] + dx * self._d[i])))

    def __call__(self, xv: ArrayLike) -> Union[float, np.ndarray]: return self.evaluate(xv)

    def evaluate_derivative(self, xv: ArrayLike) -> Union[float, np.ndarray]:
        if not self._computed: return self._neutral(xv)
        _, i, dx = self._prepare(xv)
        return self._result(xv, self._b[i] + 2.0 * self._c[i] * dx + 3.0 * self._d[i] * dx ** 2)

    def evaluate_second_derivative(self, xv: ArrayLike) -> Union[float, np.ndarray]:
        if not self._computed: return self._neutral(xv)
        _, i, dx = self._prepare(xv)
        return self._result(xv, 2.0 * self._c[i] + 6.0 * self._d[i] * dx)

    def find_crossings(self, target_y: float, x_min: float, x_max: float,
                       num_samples: int = CROSSING_SAMPLES, max_iter: int = BISECTION_MAX_ITER,
                       f_tol: float = BISECTION_F_TOL, x_tol: float = BISECTION_X_TOL) -> List[float]:
        """
        Finds x where the spline equals target_y inside [x_min, x_max].

        The curve is sampled at num_samples equal steps and every strict sign
        change is refined by bisection. Crossings narrower than one step can
        be missed and tangential touches can be reported twice.
        """
        crossings: List[float] = []
        if not self._computed: return crossings
        if num_samples < 1: raise ValidationError(f"num_samples must be positive, got {num_samples}.")
        step = (x_max - x_min) / num_samples
        xs = x_min + np.arange(num_samples + 1) * step
        fs = self.evaluate(xs) - target_y
        brackets = np.nonzero(fs[:-1] * fs[1:] < 0)[0]
        for k in brackets:
            x_left, x_right = xs[k], xs[k + 1]; f_left = fs[k]
            for it in range(max_iter):
                x_mid = (x_left + x_right) / 2.0
                f_mid = self.evaluate(x_mid) - target_y
                if abs(f_mid) < f_tol or abs(x_right - x_left) < x_tol:
                    crossings.append(x_mid); break
                if f_left * f_mid < 0: x_right = x_mid
                else: x_left = x_mid; f_left = f_mid
                if it == max_iter - 1: crossings.append((x_left + x_right) / 2.0)
        log.debug(f"Found {len(crossings)} crossings of y={target_y} in [{x_min}, {x_max}].")
        return crossings

    def sample(self, x_min: Optional[float] = None, x_max: Optional[float] = None, num_points: int = 2000) -> pd.DataFrame:
        """Evaluates the curve on an even grid, for plotting and reports."""
        if not self._computed: return pd.DataFrame(columns=['shift', 'intensity'])
        if num_points < 2: raise ValidationError(f"num_points must be >= 2, got {num_points}.")
        lo = self._x[0] if x_min is None else x_min; hi = self._x[-1] if x_max is None else x_max
        xs = np.linspace(lo, hi, num_points)
        return pd.DataFrame({'shift': xs, 'intensity': self.evaluate(xs)})
