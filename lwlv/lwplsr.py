"""
FILE:                   lwplsr.py
COPYRIGHT:              (c) 2024 Finnish Meteorological Institute
                        P.O. BOX 503
                        FI-00101 Helsinki, Finland
                        https://www.fmi.fi/
LICENCE:                MIT
AUTHOR:                 Terhi Mäkinen (terhi.makinen@fmi.fi)
DESCRIPTION:

This module provides kNN locally weighted PLS regression (kNN-LWPLSR): the
neighbors of each query are searched in the X space, or in the score space of
a preliminary global PLS, weighted by distance, and a weighted PLS model is
fitted on each neighborhood.
"""

import logging
import numpy as np
from . import algorithms as alg
from .errors import InvalidInputError
from .local import locwlv
from .models import plskern
from .neighbors import Metric, getknn

logger = logging.getLogger(__name__)

class LwplsrPar(object):
    """kNN-LWPLSR parameters.

    Parameters
    ----------
    k : int
        number of neighbors
    nlv : int or iterable of int
        number(s) of latent variables of the local models
    nlvdis : int
        number of latent variables of the global PLS used for neighbor
        search, zero searches neighbors in the X space
    metric : Metric or str
        neighbor metric
    h : float
        weight kernel sharpness, lower values give more local models
    cri : float
        outlier cutoff of the weight kernel in MADs above the median
    squared : bool
        if set, the weight kernel is Gaussian
    tol : float
        lower bound of neighbor weights
    scale : bool
        if set, local and global models scale X and Y columns
    ridge : float
        regularization of the Mahalanobis covariance, zero fails on a singular
        covariance
    agg : bool
        if set, predictions are averaged over the requested numbers of
        latent variables
    n_jobs : int or None
        number of joblib workers
    verbose : bool
        if set, progress is logged at DEBUG level
    """
    def __init__(self, k,
                       nlv,
                       nlvdis = 0,
                       metric = Metric.EUCLIDEAN,
                       h = 2.0,
                       cri = 4.0,
                       squared = False,
                       tol = 1e-4,
                       scale = False,
                       ridge = 0.0,
                       agg = False,
                       n_jobs = None,
                       verbose = False
                ):
        assert isinstance(nlvdis, (int, np.integer))
        assert isinstance(squared, bool)
        assert isinstance(scale, bool)
        assert isinstance(agg, bool)
        assert isinstance(verbose, bool)
        assert (n_jobs is None) or isinstance(n_jobs, int)

        if (not isinstance(k, (int, np.integer))) or (k < 1):
            raise InvalidInputError('k must be a positive integer')
        if isinstance(nlv, (int, np.integer)):
            nlv = int(nlv)
            if (nlv < 0):
                raise InvalidInputError('nlv must be non-negative')
        else:
            nlv = tuple(int(a) for a in nlv)
            if (len(nlv) == 0) or (min(nlv) < 0):
                raise InvalidInputError('nlv must be non-negative')
        if (nlvdis < 0):
            raise InvalidInputError('nlvdis must be non-negative')
        if not (h > 0):
            raise InvalidInputError('h must be positive')
        if (cri < 0) or (tol < 0) or (ridge < 0):
            raise InvalidInputError('cri, tol and ridge must be non-negative')

        self._k = int(k)
        self._nlv = nlv
        self._nlvdis = int(nlvdis)
        self._metric = Metric.parse(metric)
        self._h = float(h)
        self._cri = float(cri)
        self._squared = squared
        self._tol = float(tol)
        self._scale = scale
        self._ridge = float(ridge)
        self._agg = agg
        self._n_jobs = n_jobs
        self._verbose = verbose

    @property
    def agg(self):
        """Return True if predictions are averaged over the numbers of latent
        variables.

        Returns
        -------
        bool
        """
        return self._agg

    @property
    def cri(self):
        """Return outlier cutoff of the weight kernel in MADs above the median.

        Returns
        -------
        float
        """
        return self._cri

    @property
    def h(self):
        """Return weight kernel sharpness.

        Returns
        -------
        float
        """
        return self._h

    @property
    def k(self):
        """Return number of neighbors.

        Returns
        -------
        int
        """
        return self._k

    @property
    def metric(self):
        """Return neighbor metric.

        Returns
        -------
        Metric
        """
        return self._metric

    @property
    def n_jobs(self):
        """Return number of joblib workers.

        Returns
        -------
        int or None
        """
        return self._n_jobs

    @property
    def nlv(self):
        """Return number(s) of latent variables of the local models.

        Returns
        -------
        int or tuple of int
        """
        return self._nlv

    @property
    def nlvdis(self):
        """Return number of latent variables of the global PLS used for
        neighbor search.

        Returns
        -------
        int
        """
        return self._nlvdis

    @property
    def ridge(self):
        """Return regularization of the Mahalanobis covariance.

        Returns
        -------
        float
        """
        return self._ridge

    @property
    def scale(self):
        """Return True if X and Y columns are scaled.

        Returns
        -------
        bool
        """
        return self._scale

    @property
    def squared(self):
        """Return True if the weight kernel is Gaussian.

        Returns
        -------
        bool
        """
        return self._squared

    @property
    def tol(self):
        """Return lower bound of neighbor weights.

        Returns
        -------
        float
        """
        return self._tol

    @property
    def verbose(self):
        """Return True if progress is logged.

        Returns
        -------
        bool
        """
        return self._verbose

class Lwplsr(object):
    """kNN locally weighted PLS regression.

    Parameters
    ----------
    par : LwplsrPar object
        model parameters
    """
    def __init__(self, par):
        assert isinstance(par, LwplsrPar)

        self._par = par
        self._x = None
        self._y = None
        self._dis = None
        self._t = None

    def fit(self, x, y):
        """Store training data, and fit the global PLS if neighbors are
        searched in a score space.

        Parameters
        ----------
        x : array_like(N,D)
            training predictors
        y : array_like(N,Q) or array_like(N)
            training responses

        Returns
        -------
        Lwplsr object
            self
        """
        x = alg.ensure_mat(x)
        y = alg.ensure_mat(y)
        if (x.shape[0] == 0):
            raise InvalidInputError('no observations')
        if (x.shape[0] != y.shape[0]):
            raise InvalidInputError('row count mismatch between X (' +
                str(x.shape[0]) + ') and Y (' + str(y.shape[0]) + ')')
        self._x = x
        self._y = y
        if (self._par.nlvdis > 0):
            self._dis = plskern(x, y, nlv=self._par.nlvdis,
                scale=self._par.scale)
            self._t = self._dis.T
            logger.debug('neighbor search in a %d-dimensional score space',
                self._t.shape[1])
        else:
            self._dis = None
            self._t = x
        return self

    @property
    def is_fitted(self):
        """Return True if training data have been stored.

        Returns
        -------
        bool
        """
        return (self._x is not None)

    @property
    def par(self):
        """Return a reference to the model parameters.

        Returns
        -------
        LwplsrPar object
        """
        return self._par

    def neighbors(self, x):
        """Search the neighbors of the queries and compute their weights.

        Parameters
        ----------
        x : array_like(M,D)
            query predictors

        Returns
        -------
        tuple(2)
            Neighbors object
                neighbor indices and distances
            Weights object
                neighbor weights
        """
        assert self.is_fitted

        x = alg.ensure_mat(x)
        if (self._dis is None):
            t = x
        else:
            t = self._dis.transform(x)
        par = self._par
        nn = getknn(self._t, t, k=par.k, metric=par.metric, ridge=par.ridge)
        w = nn.weights(h=par.h, cri=par.cri, squared=par.squared, tol=par.tol)
        return nn, w

    def predict(self, x, nlv=None):
        """Predict responses.

        Parameters
        ----------
        x : array_like(M,D)
            query predictors
        nlv : int, iterable of int, or None
            number(s) of latent variables of the local models, the
            parameter value if None

        Returns
        -------
        ndarray(M,Q)
            predictions, averaged over the numbers of latent variables if
            the model aggregates, or
        list of ndarray(M,Q)
            predictions in ascending order of latent variables if more than
            one number was requested
        """
        assert self.is_fitted

        par = self._par
        if (nlv is None):
            nlv = par.nlv
        nn, w = self.neighbors(x)
        pred = locwlv(self._x, self._y, x, nn, w, fun=plskern, nlv=nlv,
            n_jobs=par.n_jobs, verbose=par.verbose, scale=par.scale)
        if (par.agg and isinstance(pred, list)):
            return np.mean(pred, axis=0)
        return pred

### EOF lwplsr.py ______________________________________________________________
