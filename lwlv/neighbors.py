"""
FILE:                   neighbors.py
COPYRIGHT:              (c) 2024 Finnish Meteorological Institute
                        P.O. BOX 503
                        FI-00101 Helsinki, Finland
                        https://www.fmi.fi/
LICENCE:                MIT
AUTHOR:                 Terhi Mäkinen (terhi.makinen@fmi.fi)
DESCRIPTION:

This module provides exact brute force k nearest neighbor search under the
Euclidean and Mahalanobis metrics, and the value objects carrying neighbor
indices, distances and weights to the local prediction orchestrator.
"""

from enum import Enum
import logging
import numpy as np
from numpy import matmul as mm
from . import algorithms as alg
from .errors import InvalidInputError

logger = logging.getLogger(__name__)

class Metric(Enum):
    """Enumeration of available neighbor metrics
    EUCLIDEAN   Euclidean distance
    MAHALANOBIS Mahalanobis distance with the uncorrected covariance of the
                reference set
    """
    EUCLIDEAN = 'eucl'
    MAHALANOBIS = 'mahal'

    @classmethod
    def parse(cls, metric):
        """Return the metric matching a Metric or a metric name.

        Parameters
        ----------
        metric : Metric or str
            metric, or one of 'eucl', 'euclidean', 'mahal', 'mahalanobis'

        Returns
        -------
        Metric
        """
        if isinstance(metric, Metric):
            return metric
        names = {'eucl': cls.EUCLIDEAN,
                 'euclidean': cls.EUCLIDEAN,
                 'mahal': cls.MAHALANOBIS,
                 'mahalanobis': cls.MAHALANOBIS}
        if isinstance(metric, str) and (metric.lower() in names):
            return names[metric.lower()]
        raise InvalidInputError('unknown metric ' + str(metric))

class Weights(object):
    """Per-query neighbor weights, aligned with a Neighbors object.

    Parameters
    ----------
    w : list of ndarray(K)
        non-negative weights of each query's neighbors
    """
    def __init__(self, w):
        assert isinstance(w, (list, tuple))

        self._w = []
        for wi in w:
            wi = np.asarray(wi, dtype=float).ravel()
            if (not np.all(np.isfinite(wi))) or np.any(wi < 0):
                raise InvalidInputError('weights must be finite and '
                    'non-negative')
            self._w.append(wi)

    def __getitem__(self, i):
        return self._w[i]

    def __iter__(self):
        return iter(self._w)

    def __len__(self):
        return len(self._w)

    @property
    def w(self):
        """Return the list of weight vectors.

        Returns
        -------
        list of ndarray(K)
        """
        return self._w

class Neighbors(object):
    """Result of a neighbor search.

    Parameters
    ----------
    ind : list of ndarray(K) of int
        reference row indices of each query's neighbors, ascending by distance
    d : list of ndarray(K)
        matching distances
    k : int
        effective number of neighbors
    metric : Metric
        metric used
    """
    def __init__(self, ind, d, k, metric=Metric.EUCLIDEAN):
        assert isinstance(ind, list)
        assert isinstance(d, list) and (len(d) == len(ind))
        assert isinstance(k, int) and (k > 0)
        assert isinstance(metric, Metric)

        self._ind = ind
        self._d = d
        self._k = k
        self._metric = metric

    def __len__(self):
        return len(self._ind)

    @property
    def d(self):
        """Return neighbor distances.

        Returns
        -------
        list of ndarray(K)
        """
        return self._d

    @property
    def ind(self):
        """Return neighbor indices.

        Returns
        -------
        list of ndarray(K) of int
        """
        return self._ind

    @property
    def k(self):
        """Return the effective number of neighbors, i.e., the requested
        number clamped to the size of the reference set.

        Returns
        -------
        int
        """
        return self._k

    @property
    def metric(self):
        """Return the metric used in the search.

        Returns
        -------
        Metric
        """
        return self._metric

    def weights(self, h=2.0, cri=4.0, squared=False, tol=0.0):
        """Compute neighbor weights from the distances with wdist.

        Parameters
        ----------
        h : float
            kernel sharpness
        cri : float
            outlier cutoff in MADs above the median
        squared : bool
            if set, the kernel is Gaussian
        tol : float
            lower bound of the weights, zero disables

        Returns
        -------
        Weights object
        """
        assert isinstance(tol, (int, float)) and (tol >= 0)

        w = []
        for d in self._d:
            wi = alg.wdist(d, h=h, cri=cri, squared=squared)
            if (tol > 0):
                wi[wi < tol] = tol
            w.append(wi)
        return Weights(w)

def getknn(xtrain, x, k=1, metric=Metric.EUCLIDEAN, ridge=0.0, chunk=1024):
    """Return the k nearest neighbors in xtrain of each row of x.

    Parameters
    ----------
    xtrain : array_like(N,D)
        reference data
    x : array_like(M,D)
        query data
    k : int
        number of neighbors, clamped to N
    metric : Metric or str
        neighbor metric
    ridge : float
        regularization of the Mahalanobis covariance, zero makes a singular
        covariance fail with NumericalError
    chunk : int
        number of queries processed at once

    Returns
    -------
    Neighbors object
        neighbor indices and (non-squared) distances, ascending by distance,
        ties broken by ascending index
    """
    assert isinstance(chunk, int) and (chunk > 0)

    xtrain = alg.ensure_mat(xtrain)
    x = alg.ensure_mat(x)
    N, D = xtrain.shape
    if (N == 0):
        raise InvalidInputError('empty reference set')
    if (x.shape[1] != D):
        raise InvalidInputError('column count mismatch: ' + str(D) +
            ' != ' + str(x.shape[1]))
    if (not isinstance(k, (int, np.integer))) or (k < 1):
        raise InvalidInputError('k must be a positive integer, got ' + str(k))
    k = int(k)
    if (k > N):
        logger.info('k clamped from %d to the reference set size %d', k, N)
        k = N
    metric = Metric.parse(metric)

    # whiten once, Mahalanobis distances are then Euclidean

    if (metric == Metric.MAHALANOBIS):
        Uinv = alg.whitening(xtrain, ridge=ridge)
        xtrain = mm(xtrain, Uinv)
        x = mm(x, Uinv)

    ind = []
    d = []
    for i in range(0, x.shape[0], chunk):
        d2 = alg.euclsq(xtrain, x[i:i+chunk,:])
        s = np.argsort(d2, axis=0, kind='stable')[0:k,:]
        ds = np.take_along_axis(d2, s, axis=0)**0.5
        for j in range(s.shape[1]):
            ind.append(s[:,j].copy())
            d.append(ds[:,j].copy())
    return Neighbors(ind, d, k, metric)

### EOF neighbors.py ___________________________________________________________
