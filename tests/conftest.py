"""Pytest fixtures for artifactml tests."""

import numpy as np
import pandas as pd
import pytest

from artifactml.config import get_settings
from artifactml.context import ExecutionContext


@pytest.fixture(autouse=True)
def fresh_context():
    """Every test starts without an active execution context and with fresh settings."""
    get_settings.cache_clear()
    active = ExecutionContext.active()
    if active is not None:
        active.stop()
    yield
    active = ExecutionContext.active()
    if active is not None:
        active.stop()
    get_settings.cache_clear()


@pytest.fixture
def tiny_binomial_data():
    """Ten rows, one numeric feature, a two-level string response."""
    return pd.DataFrame({
        "x": np.arange(10, dtype="int64"),
        "label": ["no"] * 5 + ["yes"] * 5,
    })


@pytest.fixture
def sample_classification_data():
    """Create a simple multi-class dataset."""
    np.random.seed(42)
    n_samples = 90
    target = np.repeat(["A", "B", "C"], n_samples // 3)
    offsets = {"A": 0.0, "B": 3.0, "C": 6.0}
    data = pd.DataFrame({
        "feature1": [np.random.normal(offsets[t], 0.5) for t in target],
        "feature2": np.random.normal(2, 1, n_samples),
        "colour": np.random.choice(["red", "green"], n_samples),
        "target": target,
    })
    # Introduce some missing values
    data.loc[0:3, "feature2"] = np.nan
    return data.sample(frac=1.0, random_state=42).reset_index(drop=True)


@pytest.fixture
def sample_regression_data():
    """Create a simple regression dataset."""
    np.random.seed(42)
    n_samples = 60
    feature1 = np.random.normal(0, 1, n_samples)
    data = pd.DataFrame({
        "feature1": feature1,
        "feature2": np.random.normal(2, 1, n_samples),
        "target": 3.0 * feature1 + np.random.normal(0, 0.1, n_samples),
    })
    return data
