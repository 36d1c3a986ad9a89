# tests/conftest.py
# Ensure project root is importable as a module during pytest runs
import pathlib
import sys

import numpy as np
import pandas as pd
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

CFG_PATH = ROOT / 'configs' / 'config_tarp.yaml'

HEADER = [
    "; ENVI Output of ROIs (4.8) [Tue Jun 01 2010]",
    "; Number of ROIs: 1",
    "; File Dimension: 4000 x 4000",
    ";",
    "; ROI name: Blue Tarps",
    "; ROI npts: 4",
]


def pixel_line(i, r=10, g=20, b=200):
    return f"{i} {100 + i} {200 + i} 775000.{i} 2052000.{i} 18.52 -72.31 {r} {g} {b}"


def write_holdout(path, rows, header=HEADER):
    path.write_text("\n".join(list(header) + list(rows)) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def separable_pixels():
    """100 rows, 50 Blue Tarp (Blue=255) and 50 others (Blue=0)."""
    r = np.random.default_rng(0)
    n = 100
    cls = ["Blue Tarp"] * 50 + ["Vegetation"] * 25 + ["Soil"] * 25
    return pd.DataFrame({
        "Class": cls,
        "Red": r.integers(0, 256, n).astype(float),
        "Green": r.integers(0, 256, n).astype(float),
        "Blue": np.where(np.array(cls) == "Blue Tarp", 255.0, 0.0),
    })


@pytest.fixture
def noisy_pixels():
    """Overlapping classes: tarps are bluer on average but not separable."""
    r = np.random.default_rng(1)
    n_pos, n_neg = 60, 140
    pos = np.column_stack([r.normal(90, 30, n_pos), r.normal(110, 30, n_pos), r.normal(170, 35, n_pos)])
    neg = np.column_stack([r.normal(150, 40, n_neg), r.normal(140, 40, n_neg), r.normal(110, 40, n_neg)])
    df = pd.DataFrame(np.vstack([pos, neg]).clip(0, 255), columns=["Red", "Green", "Blue"])
    df["Class"] = ["Blue Tarp"] * n_pos + ["Rooftop"] * n_neg
    return df


@pytest.fixture
def tarp_workspace(tmp_path, separable_pixels):
    """work_root with a training CSV, a hold-out directory and a config."""
    import yaml

    root = tmp_path / "work"
    (root / "data" / "holdout").mkdir(parents=True)
    separable_pixels.to_csv(root / "data" / "pixels.csv", index=False)

    hd = root / "data" / "holdout"
    write_holdout(hd / "a_ROI_Blue_Tarps.txt", [pixel_line(i, 20, 30, 255) for i in range(6)])
    write_holdout(hd / "b_ROI_NON_Blue_Tarps.txt", [pixel_line(i, 120, 140, 0) for i in range(6)])
    write_holdout(hd / "c_broken.txt", ["1 2 3 4 5 6 7 8 9"] * 3)

    cfg = yaml.safe_load(open(CFG_PATH, 'r'))
    cfg["work_root"] = str(root)
    cfg["data"]["source"] = "data/pixels.csv"
    cfg["holdout"]["dir"] = "data/holdout"
    cfg["train"]["k"] = 5
    cfg_path = root / "config.yaml"
    cfg_path.write_text(yaml.safe_dump(cfg))
    return cfg_path, root
