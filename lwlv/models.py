"""
FILE:                   models.py
COPYRIGHT:              (c) 2024 Finnish Meteorological Institute
                        P.O. BOX 503
                        FI-00101 Helsinki, Finland
                        https://www.fmi.fi/
LICENCE:                MIT
AUTHOR:                 Terhi Mäkinen (terhi.makinen@fmi.fi)
DESCRIPTION:

This module provides the regression models fitted on neighborhoods: weighted
partial least squares regression computed with the improved kernel algorithm
#1, and weighted multiple linear regression.

The PLS implementation is based on the paper B.S. Dayal and J.F. MacGregor,
1997. Improved PLS algorithms. Journal of Chemometrics 11 (1), 73-85,
doi:10.1002/(SICI)1099-128X(199701)11:1<73::AID-CEM435>3.0.CO;2-#. Row
weighting follows E. Sicard and R. Sabatier, 2006. Theoretical framework for
local PLS1 regression and application to a rainfall data set. Computational
Statistics & Data Analysis 51 (2), 1393-1410.
"""

import logging
import warnings
import numpy as np
from numpy import matmul as mm
from scipy.linalg import lstsq, svd
from . import algorithms as alg
from . import interfaces as ifc
from .errors import InvalidInputError, RankDeficiencyWarning

logger = logging.getLogger(__name__)

# NB: The kernel algorithm never deflates X. Only the (D,Q) cross-product
#     matrix XtY is deflated, and the weight vectors are rotated to R so that
#     scores of new data are obtained directly from centered X.

def nlv_values(nlv, nmax):
    """Clamp requested numbers of latent variables to [0,nmax].

    Parameters
    ----------
    nlv : int, iterable of int, or None
        requested number(s), nmax if None
    nmax : int
        maximal number

    Returns
    -------
    tuple(2)
        list of int
            ascending unique clamped numbers
        bool
            True if more than one number is returned
    """
    assert isinstance(nmax, (int, np.integer)) and (nmax >= 0)

    if (nlv is None):
        return ([int(nmax)], False)
    if isinstance(nlv, (int, np.integer)):
        return ([int(min(max(0, nlv), nmax))], False)
    nlv = list(nlv)
    if (len(nlv) == 0):
        raise InvalidInputError('empty set of latent variable counts')
    v = sorted(set(int(min(max(0, a), nmax)) for a in nlv))
    if ((v[0] != min(nlv)) or (v[-1] != max(nlv))):
        logger.debug('latent variable counts clamped to [0,%d]', nmax)
    return (v, len(v) > 1)

def _check_xy(x, y):
    """Return x and y as matrices after checking that they are compatible.
    """
    x = alg.ensure_mat(x)
    y = alg.ensure_mat(y)
    if (x.shape[0] == 0):
        raise InvalidInputError('no observations')
    if (x.shape[0] != y.shape[0]):
        raise InvalidInputError('row count mismatch between X (' +
            str(x.shape[0]) + ') and Y (' + str(y.shape[0]) + ')')
    return x, y

def _nonzero_scale(s):
    """Replace vanishing scales by one so that constant columns stay zero after
    centering.
    """
    s = s.copy()
    s[~(s > 0)] = 1.0
    return s

class PlsKern(ifc.ILVModel):
    """Weighted partial least squares regression, improved kernel algorithm
    #1.

    Parameters
    ----------
    nlv : int
        number of latent variables, clamped to min(N,D) on fitting
    scale : bool
        if set, X and Y columns are scaled by their weighted uncorrected
        standard deviations
    ftol : float
        relative floating point tolerance for degenerate components
    """
    def __init__(self, nlv=1, scale=False, ftol=1e-12):
        assert isinstance(nlv, (int, np.integer)) and (nlv >= 0)
        assert isinstance(scale, bool)
        assert isinstance(ftol, float) and (ftol > 0)

        self._nlv_req = int(nlv)
        self._scale = scale
        self._ftol = ftol
        self._T = None

    def fit(self, x, y, weights=None):
        """Fit the model.

        Parameters
        ----------
        x : array_like(N,D)
            predictors
        y : array_like(N,Q) or array_like(N)
            responses
        weights : array_like(N) or None
            non-negative observation weights, uniform if None

        Returns
        -------
        PlsKern object
            self
        """
        x, y = _check_xy(x, y)
        N, D = x.shape
        Q = y.shape[1]
        A = min(N, D, self._nlv_req)
        if (A < self._nlv_req):
            logger.debug('nlv clamped from %d to %d (N=%d, D=%d)',
                self._nlv_req, A, N, D)
        w = alg.mweight(weights, N)
        xmeans = alg.colmean(x, w)
        ymeans = alg.colmean(y, w)
        if self._scale:
            xscales = _nonzero_scale(alg.colstd(x, w, xmeans))
            yscales = _nonzero_scale(alg.colstd(y, w, ymeans))
        else:
            xscales = np.ones(D)
            yscales = np.ones(Q)
        x = alg.cscale(x, xmeans, xscales)
        y = alg.cscale(y, ymeans, yscales)

        XtY = mm(x.T, w.reshape((-1,1)) * y)
        T = np.zeros((N,A))
        W = np.zeros((D,A))
        P = np.zeros((D,A))
        R = np.zeros((D,A))
        C = np.zeros((Q,A))
        TT = np.zeros(A)
        wtol = self._ftol * np.sum(XtY**2)**0.5
        ttol = self._ftol * np.sum(mm(w, x**2))
        degenerate = []
        for a in range(A):
            if (Q == 1):
                u = XtY[:,0].copy()
                un = np.sum(u**2)**0.5
            else:
                U, s, Vt = svd(XtY, full_matrices=False)
                u = U[:,0]
                un = s[0]
            if not (un > wtol):
                degenerate.append(a+1)
                continue
            if (Q == 1):
                u /= un

            # rotate against previous directions, r is expressed in terms of
            # the centered input variables

            r = u - mm(R[:,0:a], mm(P[:,0:a].T, u))
            t = mm(x, r)
            dt = w * t
            tt = np.sum(t * dt)
            if not (tt > ttol):
                degenerate.append(a+1)
                continue
            c = mm(XtY.T, r) / tt
            zp = mm(x.T, dt)
            XtY -= np.outer(zp, c)
            P[:,a] = zp / tt
            T[:,a] = t
            W[:,a] = u
            R[:,a] = r
            C[:,a] = c
            TT[a] = tt
        if (len(degenerate) > 0):
            warnings.warn('degenerate latent variable(s) ' + str(degenerate) +
                ' retained as zero components', RankDeficiencyWarning,
                stacklevel=2)

        self._T, self._P, self._R, self._W, self._C, self._TT = \
            T, P, R, W, C, TT
        self._xmeans, self._xscales = xmeans, xscales
        self._ymeans, self._yscales = ymeans, yscales
        self._weights = w
        return self

    @property
    def is_fitted(self):
        """Return True if the model has been fitted.

        Returns
        -------
        bool
        """
        return (self._T is not None)

    @property
    def nlv(self):
        """Return the number of fitted latent variables, or the requested
        number if the model is not fitted.

        Returns
        -------
        int
        """
        if (self._T is None):
            return self._nlv_req
        return self._T.shape[1]

    @property
    def scale(self):
        """Return True if X and Y columns are scaled.

        Returns
        -------
        bool
        """
        return self._scale

    @property
    def T(self):
        """Return training scores.

        Returns
        -------
        ndarray(N,nlv)
        """
        return self._T

    @property
    def P(self):
        """Return X-loadings.

        Returns
        -------
        ndarray(D,nlv)
        """
        return self._P

    @property
    def R(self):
        """Return the score basis, i.e., scores = cscale(X) * R.

        Returns
        -------
        ndarray(D,nlv)
        """
        return self._R

    @property
    def W(self):
        """Return X-weights.

        Returns
        -------
        ndarray(D,nlv)
        """
        return self._W

    @property
    def C(self):
        """Return Y-loadings.

        Returns
        -------
        ndarray(Q,nlv)
        """
        return self._C

    @property
    def TT(self):
        """Return weighted score sums of squares.

        Returns
        -------
        ndarray(nlv)
        """
        return self._TT

    @property
    def xmeans(self):
        """Return weighted X column means.

        Returns
        -------
        ndarray(D)
        """
        return self._xmeans

    @property
    def xscales(self):
        """Return X column scales, ones if not scaled.

        Returns
        -------
        ndarray(D)
        """
        return self._xscales

    @property
    def ymeans(self):
        """Return weighted Y column means.

        Returns
        -------
        ndarray(Q)
        """
        return self._ymeans

    @property
    def yscales(self):
        """Return Y column scales, ones if not scaled.

        Returns
        -------
        ndarray(Q)
        """
        return self._yscales

    @property
    def weights(self):
        """Return normalized observation weights used for fitting.

        Returns
        -------
        ndarray(N)
        """
        return self._weights

    def transform(self, x, nlv=None):
        """Return latent variable scores of new data.

        Parameters
        ----------
        x : array_like(M,D)
            predictors
        nlv : int or None
            number of latent variables, the fitted number if None

        Returns
        -------
        ndarray(M,nlv)
        """
        assert self.is_fitted
        assert (nlv is None) or isinstance(nlv, (int, np.integer))

        a = nlv_values(nlv, self.nlv)[0][0]
        x = alg.ensure_mat(x)
        return mm(alg.cscale(x, self._xmeans, self._xscales), self._R[:,0:a])

    def coef(self, nlv=None):
        """Return regression coefficients in the original scale.

        Parameters
        ----------
        nlv : int or None
            number of latent variables, the fitted number if None; zero gives
            zero coefficients

        Returns
        -------
        tuple(2)
            ndarray(D,Q)
                coefficients B
            ndarray(1,Q)
                intercept
        """
        assert self.is_fitted
        assert (nlv is None) or isinstance(nlv, (int, np.integer))

        a = nlv_values(nlv, self.nlv)[0][0]
        B = (mm(self._R[:,0:a] / self._xscales.reshape((-1,1)),
             self._C[:,0:a].T) * self._yscales.reshape((1,-1)))
        b0 = self._ymeans.reshape((1,-1)) - mm(self._xmeans, B)
        return B, b0.reshape((1,-1))

    def predict(self, x, nlv=None):
        """Predict responses.

        Parameters
        ----------
        x : array_like(M,D)
            predictors
        nlv : int, iterable of int, or None
            number(s) of latent variables, the fitted number if None

        Returns
        -------
        ndarray(M,Q)
            predictions, or
        list of ndarray(M,Q)
            predictions in ascending order of latent variables if more than
            one number was requested
        """
        assert self.is_fitted

        x = alg.ensure_mat(x)
        if (x.shape[1] != self._xmeans.size):
            raise InvalidInputError('expected ' + str(self._xmeans.size) +
                ' columns, got ' + str(x.shape[1]))
        v, multi = nlv_values(nlv, self.nlv)
        pred = []
        for a in v:
            B, b0 = self.coef(nlv=a)
            pred.append(b0 + mm(x, B))
        if multi:
            return pred
        return pred[0]

    def summary(self, x):
        """Summarize the X-variance explained by the latent variables.

        Parameters
        ----------
        x : array_like(N,D)
            the predictors used for fitting

        Returns
        -------
        dict
            'nlv' : ndarray(nlv) of int
                latent variable numbers
            'var' : ndarray(nlv)
                explained variance
            'pvar' : ndarray(nlv)
                proportion of explained variance
            'cumpvar' : ndarray(nlv)
                cumulated proportion of explained variance
        """
        assert self.is_fitted

        x = alg.cscale(alg.ensure_mat(x), self._xmeans, self._xscales)
        if (x.shape[0] != self._weights.size):
            raise InvalidInputError('summary requires the fitting data')
        sstot = np.sum(mm(self._weights, x**2))
        tt = np.sum(self._P**2, axis=0) * self._TT
        pvar = tt / sstot
        return {'nlv': np.arange(1, self.nlv + 1),
                'var': tt,
                'pvar': pvar,
                'cumpvar': np.cumsum(pvar)}

class Mlr(ifc.IModel):
    """Weighted multiple linear regression.

    Parameters
    ----------
    noint : bool
        if set, the model has no intercept
    """
    def __init__(self, noint=False):
        assert isinstance(noint, bool)

        self._noint = noint
        self._B = None
        self._int = None
        self._weights = None

    def fit(self, x, y, weights=None):
        """Fit the model by weighted least squares. Rank deficient problems
        get the minimum norm solution.

        Parameters
        ----------
        x : array_like(N,D)
            predictors
        y : array_like(N,Q) or array_like(N)
            responses
        weights : array_like(N) or None
            non-negative observation weights, uniform if None

        Returns
        -------
        Mlr object
            self
        """
        x, y = _check_xy(x, y)
        w = alg.mweight(weights, x.shape[0])
        sw = w.reshape((-1,1))**0.5
        if self._noint:
            self._B = lstsq(sw * x, sw * y)[0]
            self._int = np.zeros((1,y.shape[1]))
        else:
            xmeans = alg.colmean(x, w)
            ymeans = alg.colmean(y, w)
            self._B = lstsq(sw * (x - xmeans.reshape((1,-1))),
                sw * (y - ymeans.reshape((1,-1))))[0]
            self._int = (ymeans - mm(xmeans, self._B)).reshape((1,-1))
        self._weights = w
        return self

    @property
    def is_fitted(self):
        """Return True if the model has been fitted.

        Returns
        -------
        bool
        """
        return (self._B is not None)

    def coef(self):
        """Return regression coefficients.

        Returns
        -------
        tuple(2)
            ndarray(D,Q)
                coefficients B
            ndarray(1,Q)
                intercept
        """
        assert self.is_fitted
        return self._B, self._int

    @property
    def weights(self):
        """Return normalized observation weights used for fitting.

        Returns
        -------
        ndarray(N)
        """
        return self._weights

    def predict(self, x):
        """Predict responses.

        Parameters
        ----------
        x : array_like(M,D)
            predictors

        Returns
        -------
        ndarray(M,Q)
        """
        assert self.is_fitted

        x = alg.ensure_mat(x)
        if (x.shape[1] != self._B.shape[0]):
            raise InvalidInputError('expected ' + str(self._B.shape[0]) +
                ' columns, got ' + str(x.shape[1]))
        return self._int + mm(x, self._B)

def plskern(x, y, weights=None, nlv=1, scale=False):
    """Fit a weighted PLS regression model with the improved kernel
    algorithm #1.

    Parameters
    ----------
    x : array_like(N,D)
        predictors
    y : array_like(N,Q) or array_like(N)
        responses
    weights : array_like(N) or None
        non-negative observation weights, uniform if None
    nlv : int
        number of latent variables
    scale : bool
        if set, columns are scaled by their weighted standard deviations

    Returns
    -------
    PlsKern object
    """
    return PlsKern(nlv=nlv, scale=scale).fit(x, y, weights)

def mlr(x, y, weights=None, noint=False):
    """Fit a weighted multiple linear regression model.

    Parameters
    ----------
    x : array_like(N,D)
        predictors
    y : array_like(N,Q) or array_like(N)
        responses
    weights : array_like(N) or None
        non-negative observation weights, uniform if None
    noint : bool
        if set, the model has no intercept

    Returns
    -------
    Mlr object
    """
    return Mlr(noint=noint).fit(x, y, weights)

### EOF models.py ______________________________________________________________
