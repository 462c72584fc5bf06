"""
FILE:                   interfaces.py
COPYRIGHT:              (c) 2024 Finnish Meteorological Institute
                        P.O. BOX 503
                        FI-00101 Helsinki, Finland
                        https://www.fmi.fi/
LICENCE:                MIT
AUTHOR:                 Terhi Mäkinen (terhi.makinen@fmi.fi)
DESCRIPTION:

This module provides the communication interface between the local prediction
orchestrator and the model families it fits on each neighborhood.
"""

class IModel(object):
    """Regression model interface.

    This is the interface definition.
    """
    def __init__(self): pass

    def fit(self, x, y, weights=None):
        """Fit the model.

        Parameters
        ----------
        x : ndarray(N,D)
            predictors
        y : ndarray(N,Q)
            responses
        weights : ndarray(N) or None
            non-negative observation weights, uniform if None

        Returns
        -------
        IModel object
            self
        """
        raise NotImplementedError()

    @property
    def is_fitted(self):
        """Return True if the model has been fitted.

        Returns
        -------
        bool
        """
        raise NotImplementedError()

    def predict(self, x):
        """Predict responses.

        Parameters
        ----------
        x : ndarray(M,D)
            predictors

        Returns
        -------
        ndarray(M,Q)
            predictions
        """
        raise NotImplementedError()

class ILVModel(IModel):
    """Latent variable regression model interface. Models of this kind can
    predict with any number of latent variables up to the fitted one.

    This is the interface definition.
    """
    def __init__(self): pass

    @property
    def nlv(self):
        """Return the number of fitted latent variables.

        Returns
        -------
        int
        """
        raise NotImplementedError()

    def predict(self, x, nlv=None):
        """Predict responses.

        Parameters
        ----------
        x : ndarray(M,D)
            predictors
        nlv : int, iterable of int, or None
            number(s) of latent variables, the fitted number if None

        Returns
        -------
        ndarray(M,Q)
            predictions, or
        list of ndarray(M,Q)
            predictions per number of latent variables if nlv is iterable
        """
        raise NotImplementedError()

    def transform(self, x, nlv=None):
        """Return latent variable scores of new data.

        Parameters
        ----------
        x : ndarray(M,D)
            predictors
        nlv : int or None
            number of latent variables, the fitted number if None

        Returns
        -------
        ndarray(M,nlv)
        """
        raise NotImplementedError()

### EOF interfaces.py __________________________________________________________
