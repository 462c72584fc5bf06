"""
FILE:                   estimators.py
COPYRIGHT:              (c) 2024 Finnish Meteorological Institute
                        P.O. BOX 503
                        FI-00101 Helsinki, Finland
                        https://www.fmi.fi/
LICENCE:                MIT
AUTHOR:                 Terhi Mäkinen (terhi.makinen@fmi.fi)
DESCRIPTION:

This module provides a scikit-learn compatible wrapper of kNN locally weighted
PLS regression, for use in pipelines and model selection.
"""

import numpy as np
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.utils.validation import check_array, check_is_fitted, check_X_y
from .lwplsr import Lwplsr, LwplsrPar

class LWPLSRegressor(RegressorMixin, BaseEstimator):
    """kNN locally weighted PLS regression estimator.

    Parameters
    ----------
    k : int
        number of neighbors
    nlv : int or iterable of int
        number of latent variables of the local models; predictions of
        several numbers are averaged
    nlvdis : int
        number of latent variables of the global PLS used for neighbor
        search, zero searches neighbors in the X space
    metric : str
        'eucl' or 'mahal'
    h : float
        weight kernel sharpness
    cri : float
        outlier cutoff of the weight kernel
    squared : bool
        if set, the weight kernel is Gaussian
    tol : float
        lower bound of neighbor weights
    scale : bool
        if set, columns are scaled by their weighted standard deviations
    ridge : float
        regularization of the Mahalanobis covariance
    n_jobs : int or None
        number of joblib workers
    """
    def __init__(self, k=30, nlv=5, nlvdis=0, metric='eucl', h=2.0, cri=4.0,
        squared=False, tol=1e-4, scale=False, ridge=0.0, n_jobs=None):
        self.k = k
        self.nlv = nlv
        self.nlvdis = nlvdis
        self.metric = metric
        self.h = h
        self.cri = cri
        self.squared = squared
        self.tol = tol
        self.scale = scale
        self.ridge = ridge
        self.n_jobs = n_jobs

    def fit(self, X, y):
        """Fit the estimator.

        Parameters
        ----------
        X : array_like(N,D)
            training predictors
        y : array_like(N) or array_like(N,Q)
            training responses

        Returns
        -------
        LWPLSRegressor object
            self
        """
        X, y = check_X_y(X, y, multi_output=True, y_numeric=True,
            dtype=np.float64)
        par = LwplsrPar(self.k, self.nlv, nlvdis=self.nlvdis,
            metric=self.metric, h=self.h, cri=self.cri, squared=self.squared,
            tol=self.tol, scale=self.scale, ridge=self.ridge, agg=True,
            n_jobs=self.n_jobs)
        self.model_ = Lwplsr(par).fit(X, y)
        self.n_features_in_ = X.shape[1]
        self._y_vector = (y.ndim == 1)
        return self

    def predict(self, X):
        """Predict responses.

        Parameters
        ----------
        X : array_like(M,D)
            query predictors

        Returns
        -------
        ndarray(M) or ndarray(M,Q)
            predictions, a vector if the training response was a vector
        """
        check_is_fitted(self, 'model_')
        X = check_array(X, dtype=np.float64)
        if (X.shape[1] != self.n_features_in_):
            raise ValueError('expected ' + str(self.n_features_in_) +
                ' features, got ' + str(X.shape[1]))
        pred = self.model_.predict(X)
        if self._y_vector:
            return pred.ravel()
        return pred

### EOF estimators.py __________________________________________________________
