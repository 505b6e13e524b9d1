# tests/conftest.py

import pytest
import numpy as np
from pclmetrics import PCLConfig

from helpers import build_transect

@pytest.fixture
def default_config():
    return PCLConfig()

@pytest.fixture
def alternating_transect():
    """
    One 10 m marker interval with ten pulses, one per metre.
    Even metres hold a single return at 4.5 m above ground, odd metres are open sky.
    """
    rows = [(1, 5.5) if i % 2 == 0 else (1, None) for i in range(10)]
    return build_transect("alternating.csv", rows)

@pytest.fixture
def sky_transect():
    """Two marker intervals where no pulse returns."""
    rows = [(1, None)] * 20 + [(2, None)] * 20
    return build_transect("open_sky.csv", rows)

@pytest.fixture
def random_transect():
    """Three marker intervals of synthetic returns with a fixed seed."""
    rng = np.random.default_rng(42)
    rows = []
    for marker in (1, 2, 3):
        for _ in range(400):
            if rng.random() < 0.3:
                rows.append((marker, None))
            else:
                rows.append((marker, float(rng.uniform(0.2, 45.0))))
    return build_transect("synthetic.csv", rows)

@pytest.fixture
def pcl_csv_factory(tmp_path):
    """
    Factory fixture writing raw PCL csv files (distance,intensity; -9999 marks a marker).
    """
    def _create(filename, segments):
        lines = ["-9999,0"]
        for segment in segments:
            for distance in segment:
                lines.append("," if distance is None else f"{distance},100")
            lines.append("-9999,0")
        path = tmp_path / filename
        path.write_text("\n".join(lines) + "\n")
        return path
    return _create
