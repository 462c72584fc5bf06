"""
FILE:                   algorithms.py
COPYRIGHT:              (c) 2024 Finnish Meteorological Institute
                        P.O. BOX 503
                        FI-00101 Helsinki, Finland
                        https://www.fmi.fi/
LICENCE:                MIT
AUTHOR:                 Terhi Mäkinen (terhi.makinen@fmi.fi)
DESCRIPTION:

This module provides miscellaneous low-level algorithms used by the locally
weighted latent variable engine: weighted column statistics, squared Euclidean
and Mahalanobis distances, the whitening transform, and the distance-to-weight
kernel.

The weight function follows M. Lesnoff, M. Metz and J.M. Roger, 2020.
Comparison of locally weighted PLS strategies for regression and discrimination
on agronomic NIR data. Journal of Chemometrics 34 (5), e3209,
doi:10.1002/cem.3209.
"""

import numpy as np
from numpy import matmul as mm
from scipy.linalg import LinAlgError, cho_factor, cho_solve, cholesky, \
    solve_triangular
from scipy.spatial.distance import cdist
from scipy.stats import median_abs_deviation
from .errors import InvalidInputError, NumericalError

def ensure_mat(x):
    """Return the argument as a 2-D float array, promoting vectors to single
    column matrices.

    Parameters
    ----------
    x : array_like(N) or array_like(N,D)
        data

    Returns
    -------
    ndarray(N,D)
    """
    x = np.asarray(x, dtype=float)
    if (x.ndim == 0):
        return x.reshape((1,1))
    if (x.ndim == 1):
        return x.reshape((-1,1))
    if (x.ndim != 2):
        raise InvalidInputError('expected a matrix, got an array of ' +
            str(x.ndim) + ' dimensions')
    return x

def mweight(w, n=None):
    """Normalize observation weights to sum to one.

    Parameters
    ----------
    w : array_like(N) or None
        non-negative weights, or None for uniform weights
    n : int or None
        expected number of weights, mandatory if w is None

    Returns
    -------
    ndarray(N)
        normalized weights
    """
    assert (w is not None) or (isinstance(n, int) and (n > 0))

    if (w is None):
        return np.full(n, 1.0 / n)
    w = np.asarray(w, dtype=float).ravel()
    if ((n is not None) and (w.size != n)):
        raise InvalidInputError('expected ' + str(n) + ' weights, got ' +
            str(w.size))
    if (not np.all(np.isfinite(w))) or np.any(w < 0):
        raise InvalidInputError('weights must be finite and non-negative')
    s = np.sum(w)
    if (s <= 0):
        raise InvalidInputError('weights must have a positive sum')
    return w / s

def colmean(x, w):
    """Weighted column means.

    Parameters
    ----------
    x : ndarray(N,D)
        data
    w : ndarray(N)
        weights summing to one

    Returns
    -------
    ndarray(D)
    """
    return mm(w, x)

def colstd(x, w, m=None):
    """Weighted uncorrected column standard deviations.

    Parameters
    ----------
    x : ndarray(N,D)
        data
    w : ndarray(N)
        weights summing to one
    m : ndarray(D) or None
        column means, computed if not given

    Returns
    -------
    ndarray(D)
    """
    if (m is None):
        m = colmean(x, w)
    return mm(w, (x - m.reshape((1,-1)))**2)**0.5

def cscale(x, m, s):
    """Return the data centered by m and scaled by s.

    Parameters
    ----------
    x : ndarray(N,D)
        data
    m : ndarray(D)
        column centers
    s : ndarray(D)
        column scales

    Returns
    -------
    ndarray(N,D)
    """
    return (x - m.reshape((1,-1))) / s.reshape((1,-1))

def mad(d):
    """Median absolute deviation, scaled to be consistent with the standard
    deviation of normally distributed data.

    Parameters
    ----------
    d : ndarray(N)
        data

    Returns
    -------
    float
    """
    return float(median_abs_deviation(d, scale='normal'))

def wdist(d, h=2.0, cri=4.0, squared=False):
    """Compute weights from distances with a decreasing exponential kernel.

    Weights are exp(-d / (h * MAD(d))), or 0 for distances exceeding
    median(d) + cri * MAD(d), normalized so that the largest weight is 1. If
    the weights cannot be normalized (e.g. all distances are equal) all
    weights are set to 1.

    Parameters
    ----------
    d : array_like(K)
        distances
    h : float
        kernel sharpness, lower values give a faster decrease
    cri : float
        outlier cutoff in MADs above the median
    squared : bool
        if set, squared distances are used, making the kernel Gaussian

    Returns
    -------
    ndarray(K)
        weights in [0,1]
    """
    assert isinstance(squared, bool)

    if (h <= 0):
        raise InvalidInputError('h must be positive')
    if (cri < 0):
        raise InvalidInputError('cri must be non-negative')
    d = np.array(d, dtype=float).ravel()
    if (d.size == 0):
        return d
    if (not np.all(np.isfinite(d))) or np.any(d < 0):
        raise InvalidInputError('distances must be finite and non-negative')
    if squared:
        d = d**2
    zmed = np.median(d)
    zmad = mad(d)
    cutoff = zmed + cri * zmad
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        w = np.where(d <= cutoff, np.exp(-d / (h * zmad)), 0.0)
        w = w / np.amax(w)
    if not np.all(np.isfinite(w)):
        return np.ones(d.size)
    return w

def euclsq(x, y):
    """Squared Euclidean distances between the rows of x and y.

    Parameters
    ----------
    x : array_like(N,D)
        data
    y : array_like(M,D)
        data

    Returns
    -------
    ndarray(N,M)
    """
    x = ensure_mat(x)
    y = ensure_mat(y)
    if (x.shape[1] != y.shape[1]):
        raise InvalidInputError('column count mismatch: ' +
            str(x.shape[1]) + ' != ' + str(y.shape[1]))
    return cdist(x, y, metric='sqeuclidean')

def covm(x):
    """Uncorrected covariance matrix (divided by N) of the columns of x.

    Parameters
    ----------
    x : ndarray(N,D)
        data

    Returns
    -------
    ndarray(D,D)
    """
    xc = x - np.mean(x, axis=0).reshape((1,-1))
    return mm(xc.T, xc) / x.shape[0]

def whitening(x, ridge=0.0):
    """Return the inverse of the upper Cholesky factor of the uncorrected
    covariance matrix of x, so that x * Uinv has identity covariance.

    Parameters
    ----------
    x : array_like(N,D)
        reference data
    ridge : float
        non-negative regularization added to the covariance diagonal

    Returns
    -------
    ndarray(D,D)
        Uinv
    """
    assert isinstance(ridge, (int, float)) and (ridge >= 0)

    x = ensure_mat(x)
    if (x.shape[0] == 0):
        raise InvalidInputError('empty reference set')
    D = x.shape[1]
    ftol = 100 * D * np.finfo(float).eps
    S = covm(x)
    if (ridge > 0):
        S = S + ridge * np.eye(D)
    s2 = np.diag(S)

    # a standard deviation at the roundoff level of centering means a
    # constant column, whatever the column offset

    if np.any(s2**0.5 <= ftol * np.amax(np.abs(x), axis=0)):
        raise NumericalError('singular covariance (zero variance)')
    if (D == 1):
        return np.array([[s2[0]**-0.5]])
    try:
        U = cholesky(S, lower=False)
    except LinAlgError as e:
        raise NumericalError('singular covariance: ' + str(e)) from e

    # U[j,j]**2 / S[j,j] is the share of the variance of column j not
    # explained by the previous columns, independent of column scales

    if np.any(np.diag(U)**2 <= ftol * s2):
        raise NumericalError('near-singular covariance, consider a ridge term')
    return solve_triangular(U, np.eye(D), lower=False)

def mahsqchol(x, y, Uinv=None, ridge=0.0):
    """Squared Mahalanobis distances between the rows of x and y, computed as
    Euclidean distances of the whitened data.

    Parameters
    ----------
    x : array_like(N,D)
        data, also the reference for the covariance if Uinv is not given
    y : array_like(M,D)
        data
    Uinv : ndarray(D,D) or None
        inverse upper Cholesky factor of the covariance matrix
    ridge : float
        regularization used if Uinv is computed

    Returns
    -------
    ndarray(N,M)
    """
    x = ensure_mat(x)
    y = ensure_mat(y)
    if (Uinv is None):
        Uinv = whitening(x, ridge=ridge)
    Uinv = ensure_mat(Uinv)
    return euclsq(mm(x, Uinv), mm(y, Uinv))

def mahsq(x, y, Sinv=None):
    """Squared Mahalanobis distances between the rows of x and y.

    Parameters
    ----------
    x : array_like(N,D)
        data, also the reference for the covariance if Sinv is not given
    y : array_like(M,D)
        data
    Sinv : ndarray(D,D) or None
        inverse covariance matrix

    Returns
    -------
    ndarray(N,M)
    """
    x = ensure_mat(x)
    y = ensure_mat(y)
    if (x.shape[1] != y.shape[1]):
        raise InvalidInputError('column count mismatch: ' +
            str(x.shape[1]) + ' != ' + str(y.shape[1]))
    if (Sinv is None):
        try:
            c = cho_factor(covm(x))
        except LinAlgError as e:
            raise NumericalError('singular covariance: ' + str(e)) from e
        Sinv = cho_solve(c, np.eye(x.shape[1]))
    Sinv = ensure_mat(Sinv)
    xm = mm(x, Sinv)
    d = (np.sum(xm * x, axis=1).reshape((-1,1)) +
         np.sum(mm(y, Sinv) * y, axis=1).reshape((1,-1)) -
         2 * mm(xm, y.T))
    return np.maximum(d, 0)

### EOF algorithms.py __________________________________________________________
