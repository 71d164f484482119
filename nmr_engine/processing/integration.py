# nmr_engine/processing/integration.py
import logging; log = logging.getLogger(__name__)
from typing import Callable, Dict, List, Optional, Union
import numpy as np
from ..core._exceptions import ValidationError, UnsupportedSelectorError

NEWTON_COTES_MAX_DOUBLINGS = 20
ROMBERG_MAX_LEVELS = 15
ADAPTIVE_MAX_DEPTH = 50

# 64-point Gauss-Legendre rule on [-1, 1]: positive nodes only, the negative half mirrors them
_GL64_NODES = np.array([
    0.0243502926634244325089558, 0.0729931217877990394495429, 0.1214628192961205544703765,
    0.1696444204239928180373136, 0.2174236437400070841496487, 0.2646871622087674163739642,
    0.3113228719902109561575127, 0.3572201583376681159504426, 0.4022701579639916036957668,
    0.4463660172534640879849477, 0.4894031457070529574785263, 0.5312794640198945456580139,
    0.5718956462026340342838781, 0.6111553551723932502488530, 0.6489654712546573398577612,
    0.6852363130542332425635584, 0.7198818501716108268489402, 0.7528199072605318966118638,
    0.7839723589433414076102205, 0.8132653151227975597419233, 0.8406292962525803627516915,
    0.8659993981540928197607834, 0.8893154459951141058534040, 0.9105221370785028057563807,
    0.9295691721319395758214902, 0.9464113748584028160624815, 0.9610087996520537189186141,
    0.9733268277899109637418535, 0.9833362538846259569312993, 0.9910133714767443207393824,
    0.9963401167719552793469245, 0.9993050417357721394569056,
])
_GL64_WEIGHTS = np.array([
    0.0486909570091397203833654, 0.0485754674415034269347991, 0.0483447622348029571697695,
    0.0479993885964583077281262, 0.0475401657148303086622822, 0.0469681828162100173253263,
    0.0462847965813144172959532, 0.0454916279274181444797710, 0.0445905581637565630601347,
    0.0435837245293234533768279, 0.0424735151236535890073398, 0.0412625632426235286101563,
    0.0399537411327203413866569, 0.0385501531786156291289625, 0.0370551285402400460404151,
    0.0354722132568823838106931, 0.0338051618371416093915655, 0.0320579283548515535854675,
    0.0302346570724024788679741, 0.0283396726142594832275113, 0.0263774697150546586716918,
    0.0243527025687108733381776, 0.0222701738083832541592983, 0.0201348231535302093723403,
    0.0179517157756973430850453, 0.0157260304760247193219660, 0.0134630478967186425980608,
    0.0111681394601311288185905, 0.0088467598263639477230309, 0.0065044579689783628561174,
    0.0041470332605624676352875, 0.0017832807216964329472961,
])
_GL64_NODES.flags.writeable = False; _GL64_WEIGHTS.flags.writeable = False


def _require_computed(spline, method_name: str):
    if spline is None or not getattr(spline, 'is_computed', False):
        raise ValidationError(f"{method_name} integration requires a computed spline.")


def _trapezoid(f: Callable, a: float, b: float, n: int) -> float:
    fx = f(np.linspace(a, b, n + 1))
    return (b - a) / n * (0.5 * (fx[0] + fx[-1]) + fx[1:-1].sum())


def newton_cotes(spline, a: float, b: float, tolerance: float) -> float:
    """Composite Simpson's rule, doubling the (even) subinterval count until two estimates agree."""
    _require_computed(spline, "Newton-Cotes")
    n = 2; previous = 0.0; integral = 0.0
    for it in range(NEWTON_COTES_MAX_DOUBLINGS):
        h = (b - a) / n
        fx = spline.evaluate(np.linspace(a, b, n + 1))
        integral = (h / 3.0) * (fx[0] + fx[-1] + 4.0 * fx[1:-1:2].sum() + 2.0 * fx[2:-1:2].sum())
        if it > 0 and abs(integral - previous) < tolerance:
            log.debug(f"Newton-Cotes converged with {n} subintervals: {integral:.10e}")
            return float(integral)
        previous = integral; n *= 2
    log.debug(f"Newton-Cotes hit {NEWTON_COTES_MAX_DOUBLINGS} doublings without converging, returning {integral:.10e}")
    return float(integral)


def romberg(spline, a: float, b: float, tolerance: float) -> float:
    """Romberg extrapolation on the trapezoid rule; the table grows one row per level."""
    _require_computed(spline, "Romberg")
    table: List[List[float]] = []
    for i in range(ROMBERG_MAX_LEVELS):
        row = [_trapezoid(spline.evaluate, a, b, 2 ** i)]
        for j in range(1, i + 1):
            factor = 4.0 ** j
            row.append((factor * row[j - 1] - table[i - 1][j - 1]) / (factor - 1.0))
        table.append(row)
        if i > 0 and abs(table[i][i] - table[i - 1][i - 1]) < tolerance:
            log.debug(f"Romberg converged at level {i}: {table[i][i]:.10e}")
            return float(table[i][i])
    log.debug(f"Romberg hit {ROMBERG_MAX_LEVELS} levels without converging.")
    return float(table[-1][-1])


def _adaptive_step(f: Callable, a: float, b: float, tolerance: float,
                   fa: float, fb: float, fmid: float, depth: int) -> float:
    mid = (a + b) / 2.0; h = b - a
    f_left_mid = f((a + mid) / 2.0); f_right_mid = f((mid + b) / 2.0)
    whole = (h / 6.0) * (fa + 4.0 * fmid + fb)
    split = (h / 12.0) * (fa + 4.0 * f_left_mid + fmid) + (h / 12.0) * (fmid + 4.0 * f_right_mid + fb)
    if abs(split - whole) / 15.0 < tolerance:
        return split + (split - whole) / 15.0
    if depth >= ADAPTIVE_MAX_DEPTH:
        log.warning(f"Adaptive Simpson reached depth {depth} on [{a}, {b}]; accepting estimate.")
        return split + (split - whole) / 15.0
    return (_adaptive_step(f, a, mid, tolerance / 2.0, fa, fmid, f_left_mid, depth + 1)
            + _adaptive_step(f, mid, b, tolerance / 2.0, fmid, fb, f_right_mid, depth + 1))


def adaptive_simpson(spline, a: float, b: float, tolerance: float) -> float:
    """Recursive adaptive Simpson quadrature with Richardson correction."""
    _require_computed(spline, "Adaptive")
    f = spline.evaluate
    return float(_adaptive_step(f, a, b, tolerance, f(a), f(b), f((a + b) / 2.0), 0))


def gauss_legendre(spline, a: float, b: float, tolerance: Optional[float] = None) -> float:
    """Fixed 64-point Gauss-Legendre rule. tolerance is accepted for a uniform call signature and ignored."""
    _require_computed(spline, "Gauss-Legendre")
    midpoint = (a + b) / 2.0; halfwidth = (b - a) / 2.0
    offsets = halfwidth * _GL64_NODES
    values = spline.evaluate(midpoint + offsets) + spline.evaluate(midpoint - offsets)
    return float(halfwidth * np.dot(_GL64_WEIGHTS, values))


INTEGRATION_METHODS: Dict[int, Callable] = {0: newton_cotes, 1: romberg, 2: adaptive_simpson, 3: gauss_legendre}
INTEGRATION_METHOD_NAMES: Dict[int, str] = {0: "Newton-Cotes", 1: "Romberg", 2: "Adaptive Quadrature", 3: "Gauss-Legendre Quadrature"}
_METHOD_ALIASES: Dict[str, int] = {"newton_cotes": 0, "simpson": 0, "romberg": 1, "adaptive": 2, "adaptive_simpson": 2,
                                   "gauss_legendre": 3, "gauss": 3, "quadrature": 3}


def resolve_method(method: Union[int, str]) -> int:
    """Maps a selector (0-3 or a method name) to its integer id."""
    if isinstance(method, bool): raise UnsupportedSelectorError(f"Unknown integration method: {method!r}")
    if isinstance(method, (int, np.integer)):
        if int(method) in INTEGRATION_METHODS: return int(method)
    elif isinstance(method, str):
        key = method.strip().lower()
        if key.isdigit() and int(key) in INTEGRATION_METHODS: return int(key)
        if key in _METHOD_ALIASES: return _METHOD_ALIASES[key]
    raise UnsupportedSelectorError(f"Unknown integration method: {method!r}. Available: {INTEGRATION_METHOD_NAMES}")


def integrate(spline, a: float, b: float, method: Union[int, str] = 0, tolerance: float = 1e-8) -> float:
    method_id = resolve_method(method)
    return INTEGRATION_METHODS[method_id](spline, a, b, tolerance)


def integrate_all_methods(spline, a: float, b: float, tolerance: float = 1e-8) -> Dict[str, float]:
    """Runs every method over [a, b] so the estimates can be compared."""
    results = {INTEGRATION_METHOD_NAMES[k]: func(spline, a, b, tolerance) for k, func in INTEGRATION_METHODS.items()}
    spread = max(results.values()) - min(results.values())
    log.debug(f"Cross-validated [{a:.6f}, {b:.6f}]: spread={spread:.3e}")
    return results
