# File: rasqualtools/gc_correction.py
# Location: rasqualtools/rasqualtools/gc_correction.py
"""
GC-content correction of count data.

Provides:
- quantile_bins(): assign values to k equal-sized quantile bins.
- smooth_spline_fit(): cubic smoothing spline with R's ``spar`` calibration.
- gc_correct(): per-feature, per-sample multiplicative correction factors
  from GC-binned count trends.
- plot_gc_correction(): optional diagnostic figure.

Usage
-----
The returned factors have the shape of the count matrix and are typically
multiplied into library size factors before they are exported for RASQUAL.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd
from scipy.interpolate import BSpline
from scipy.linalg import solve

from .config import get_default

logger = logging.getLogger("rasqualtools")


def quantile_bins(
    x: Sequence[float] | np.ndarray,
    k: int = 20,
    rng: np.random.Generator | int | None = None,
) -> np.ndarray:
    """
    Assign each value to one of k quantile bins.

    Values are ranked with ties broken at random. For each of the k
    thresholds (the i/k quantiles of the ranks, i = 1..k) an element counts
    the thresholds it lies at or below; its bin is k minus that count. The
    smallest value therefore lands in bin 0 and the largest in bin k-1, and
    tie-free input gives bins whose sizes differ by at most one.

    Parameters
    ----------
    x : array-like of float
        Values to bin.
    k : int
        Number of bins.
    rng : numpy.random.Generator or int, optional
        Source of randomness for tie-breaking (or a seed).

    Returns
    -------
    np.ndarray
        Integer bin index in 0..k-1 for every element of x.
    """
    values = np.asarray(x, dtype=float)
    n = len(values)
    rng = np.random.default_rng(rng)

    order = np.lexsort((rng.random(n), values))
    ranks = np.empty(n, dtype=float)
    ranks[order] = np.arange(1, n + 1)

    thresholds = np.quantile(ranks, np.arange(1, k + 1) / k)
    z = (ranks[:, None] <= thresholds[None, :]).sum(axis=1)
    return (k - z).astype(int)


def _n_knots(n: int) -> int:
    """Number of inner knots smooth.spline places for n distinct x values."""
    if n < 50:
        return n
    a1, a2, a3, a4 = (math.log2(v) for v in (50, 100, 140, 200))
    if n < 200:
        value = 2.0 ** (a1 + (a2 - a1) * (n - 50) / 150)
    elif n < 800:
        value = 2.0 ** (a2 + (a3 - a2) * (n - 200) / 600)
    elif n < 3200:
        value = 2.0 ** (a3 + (a4 - a3) * (n - 800) / 2400)
    else:
        value = 200 + (n - 3200) ** 0.2
    return int(value)


def _smoothing_knots(x: np.ndarray) -> np.ndarray:
    """
    Cubic B-spline knot vector for sorted, unique x.

    Inner knots are a subset of x taken at evenly spaced (truncated)
    positions, so both end points are always knots; the boundary knots are
    repeated three more times.
    """
    positions = np.linspace(1, len(x), _n_knots(len(x))).astype(int) - 1
    inner = x[positions]
    return np.concatenate([[inner[0]] * 3, inner, [inner[-1]] * 3])


def _penalty_matrix(t: np.ndarray) -> np.ndarray:
    """Gram matrix of the integrated products of B-spline second derivatives."""
    n_basis = len(t) - 4
    breaks = np.unique(t)

    # B'' is linear between knots, so two-point Gauss-Legendre is exact for B''_i * B''_j
    left, right = breaks[:-1], breaks[1:]
    half = (right - left) / 2
    mid = (right + left) / 2
    offset = half / math.sqrt(3)
    points = np.concatenate([mid - offset, mid + offset])
    weights = np.concatenate([half, half])

    second_deriv = BSpline(t, np.eye(n_basis), 3).derivative(2)(points)
    return second_deriv.T @ (weights[:, None] * second_deriv)


def _spar_to_lambda(xtwx: np.ndarray, omega: np.ndarray, spar: float) -> float:
    """
    Translate R's ``spar`` into the penalty weight lambda.

    lambda = r * 256**(3*spar - 1), with r = tr(X'WX) / tr(Omega) where both
    traces run over the interior basis functions only (the first two and
    last three are left out).
    """
    interior = np.arange(2, len(omega) - 3)
    ratio = np.diag(xtwx)[interior].sum() / np.diag(omega)[interior].sum()
    return float(ratio * 256 ** (3 * spar - 1))


def smooth_spline_fit(x: np.ndarray, y: np.ndarray, spar: float = 1.0) -> np.ndarray:
    """
    Fit a cubic smoothing spline of y on x and return the fitted values at x.

    Follows R's smooth.spline: repeated x values are collapsed to their mean
    response with a weight equal to their multiplicity, x is rescaled to
    [0, 1], the penalized B-spline basis uses every x as a knot below 50
    distinct values and a thinned knot set above that, and the penalty is
    calibrated from ``spar`` on that basis.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)

    ux, inverse, counts = np.unique(x, return_inverse=True, return_counts=True)
    w = counts.astype(float)
    ybar = np.bincount(inverse, weights=y) / w

    scaled = (ux - ux[0]) / (ux[-1] - ux[0])
    t = _smoothing_knots(scaled)
    design = BSpline.design_matrix(scaled, t, 3).toarray()
    omega = _penalty_matrix(t)
    xtwx = design.T @ (w[:, None] * design)

    lam = _spar_to_lambda(xtwx, omega, spar)
    logger.debug("Smoothing spline: %d knots, lambda %.4g", len(t) - 6, lam)
    coef = solve(xtwx + lam * omega, design.T @ (w * ybar), assume_a="sym")
    return (design @ coef)[inverse]


def plot_gc_correction(
    gc_means: np.ndarray,
    log_rates: np.ndarray,
    fitted: np.ndarray,
    output_path: str | Path,
    sample_names: Sequence[str] | None = None,
) -> bool:
    """Write the GC-correction diagnostic figure as PNG.

    One panel per sample shows the observed log relative rate of every GC
    bin (points) with the smoothed curve (red line); a final panel overlays
    all smoothed curves against the bin-mean GC content.

    Returns
    -------
    bool
        True if the figure was written, False if matplotlib is not installed.
    """
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        logger.info("matplotlib not installed, GC correction plot skipped")
        return False

    n_samples = log_rates.shape[1]
    if sample_names is None:
        sample_names = [str(i) for i in range(n_samples)]

    n_cols = 5
    n_rows = math.ceil((n_samples + 1) / n_cols)
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(3 * n_cols, 3 * n_rows), squeeze=False)
    flat_axes = axes.ravel()

    bin_index = np.arange(log_rates.shape[0])
    for i in range(n_samples):
        ax = flat_axes[i]
        ax.scatter(bin_index, log_rates[:, i], s=4, facecolors="none", edgecolors="k")
        ax.plot(bin_index, fitted[:, i], color="red")
        ax.set_title(str(sample_names[i]), fontsize=8)

    overlay = flat_axes[n_samples]
    overlay.plot(gc_means, fitted, color="red", linewidth=0.8)
    overlay.set_xlabel("GC content")
    overlay.set_title("Fitted curves", fontsize=8)

    for ax in flat_axes[n_samples + 1 :]:
        ax.axis("off")

    fig.tight_layout()
    plt.savefig(str(output_path), dpi=150, bbox_inches="tight")
    plt.close(fig)

    logger.info(f"GC correction plot written to {output_path}")
    return True


def gc_correct(
    counts: pd.DataFrame | np.ndarray,
    gc: Sequence[float] | np.ndarray,
    n_bins: int | None = None,
    spar: float | None = None,
    plot: bool = False,
    plot_path: str | Path = "gc_correction.png",
    rng: np.random.Generator | int | None = None,
) -> pd.DataFrame | np.ndarray:
    """
    Compute GC-content correction factors for a count matrix.

    Features are split into ``n_bins`` GC quantile bins. Counts are summed
    per bin and sample and turned into log relative rates (normalized by
    sample totals, then by bin totals, rescaled by the grand total). A
    smoothing spline of the rates on bin-mean GC content is fitted per
    sample and its exponentiated values are mapped back to each feature.

    Parameters
    ----------
    counts : pd.DataFrame or np.ndarray
        Count matrix, features in rows and samples in columns.
    gc : array-like of float
        GC content of each feature, aligned with the rows of counts.
    n_bins : int, optional
        Number of GC bins. Default from config (200).
    spar : float, optional
        Smoothing parameter on R's spar scale. Default from config (1.0).
    plot : bool
        Whether to write the diagnostic figure.
    plot_path : str or Path
        Output path for the figure when plot is True.
    rng : numpy.random.Generator or int, optional
        Randomness for tie-breaking in the GC ranking.

    Returns
    -------
    pd.DataFrame or np.ndarray
        Multiplicative correction factors with the same shape as counts;
        a DataFrame keeps the index and columns of the input.
    """
    if n_bins is None:
        n_bins = get_default("gc_bins")
    if spar is None:
        spar = get_default("spline_spar")

    count_matrix = np.asarray(counts, dtype=float)
    gc_values = np.asarray(gc, dtype=float)
    if count_matrix.ndim != 2 or count_matrix.shape[0] != len(gc_values):
        raise ValueError(
            f"counts must be a features x samples matrix with one row per GC value; "
            f"got shape {count_matrix.shape} for {len(gc_values)} GC values"
        )

    bins = quantile_bins(gc_values, n_bins, rng=rng)
    all_bins = pd.RangeIndex(n_bins)

    gc_means = pd.Series(gc_values).groupby(bins).mean().reindex(all_bins).to_numpy()
    bin_sums = pd.DataFrame(count_matrix).groupby(bins).sum().reindex(all_bins).to_numpy()
    logger.debug("GC bins: %d features into %d bins", len(gc_values), n_bins)

    with np.errstate(divide="ignore", invalid="ignore"):
        log_rates = np.log(
            bin_sums
            / bin_sums.sum(axis=0)
            / bin_sums.sum(axis=1)[:, None]
            * bin_sums.sum()
        )

    fitted = np.column_stack(
        [smooth_spline_fit(gc_means, log_rates[:, j], spar=spar) for j in range(log_rates.shape[1])]
    )
    logger.info(f"GC correction fitted for {count_matrix.shape[1]} samples")

    if plot:
        sample_names = list(counts.columns) if isinstance(counts, pd.DataFrame) else None
        plot_gc_correction(gc_means, log_rates, fitted, plot_path, sample_names)

    factors = np.exp(fitted[bins, :])
    if isinstance(counts, pd.DataFrame):
        return pd.DataFrame(factors, index=counts.index, columns=counts.columns)
    return factors
