import numpy as np
import pytest


def make_box_spectrum(height=10.0, reference_at=None):
    """Two flat-topped bumps spanning 4 and 12 samples, optionally with a single-sample reference spike."""
    x = np.arange(1, 51, dtype=float)
    y = np.zeros_like(x)
    y[(x >= 6) & (x <= 9)] = height
    y[(x >= 21) & (x <= 32)] = height
    if reference_at is not None:
        y[x == reference_at] = height
    return x, y


@pytest.fixture
def box_spectrum():
    return make_box_spectrum()


@pytest.fixture
def spike_spectrum():
    x = np.array([0.0, 1.0, 2.0, 3.0, 4.0])
    y = np.array([0.0, 0.0, 5.0, 0.0, 0.0])
    return x, y


@pytest.fixture
def spectrum_file(tmp_path):
    x, y = make_box_spectrum(reference_at=45.0)
    path = tmp_path / "spectrum.dat"
    lines = ["# synthetic spectrum", ""] + [f"{xi:.4f}\t{yi:.4f}" for xi, yi in zip(x[::-1], y[::-1])]
    path.write_text("\n".join(lines) + "\n")
    return path
