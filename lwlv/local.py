"""
FILE:                   local.py
COPYRIGHT:              (c) 2024 Finnish Meteorological Institute
                        P.O. BOX 503
                        FI-00101 Helsinki, Finland
                        https://www.fmi.fi/
LICENCE:                MIT
AUTHOR:                 Terhi Mäkinen (terhi.makinen@fmi.fi)
DESCRIPTION:

This module provides the local prediction orchestrator: for each query a model
is fitted on the query's weighted neighborhood and used to predict that query
only.

Queries are independent. They are partitioned into batches processed by a
joblib thread pool; every batch fills a private output block, and blocks are
gathered by query index.
"""

import logging
import numpy as np
from joblib import Parallel, delayed, effective_n_jobs
from . import algorithms as alg
from .errors import EmptyNeighborhoodError, InvalidInputError
from .models import nlv_values, plskern
from .neighbors import Neighbors, Weights

logger = logging.getLogger(__name__)

def _check_local(xtrain, ytrain, x, listnn, listw):
    """Validate and normalize orchestrator arguments.

    Returns
    -------
    tuple(5)
        xtrain, ytrain, x, list of index vectors, list of weight vectors or
        None
    """
    xtrain = alg.ensure_mat(xtrain)
    ytrain = alg.ensure_mat(ytrain)
    x = alg.ensure_mat(x)
    N = xtrain.shape[0]
    if (N == 0):
        raise InvalidInputError('empty reference set')
    if (ytrain.shape[0] != N):
        raise InvalidInputError('row count mismatch between X (' + str(N) +
            ') and Y (' + str(ytrain.shape[0]) + ')')
    if (x.shape[1] != xtrain.shape[1]):
        raise InvalidInputError('column count mismatch: ' +
            str(xtrain.shape[1]) + ' != ' + str(x.shape[1]))
    if isinstance(listnn, Neighbors):
        listnn = listnn.ind
    if (len(listnn) != x.shape[0]):
        raise InvalidInputError('expected ' + str(x.shape[0]) +
            ' neighbor lists, got ' + str(len(listnn)))
    nn = []
    for i, s in enumerate(listnn):
        s = np.atleast_1d(np.asarray(s)).ravel()
        if (s.size == 0):
            raise EmptyNeighborhoodError('empty neighborhood for query ' +
                str(i))
        if (not issubclass(s.dtype.type, np.integer)):
            raise InvalidInputError('neighbor indices must be integers')
        if (np.amin(s) < 0) or (np.amax(s) >= N):
            raise InvalidInputError('neighbor index out of range for query ' +
                str(i))
        nn.append(s)
    if (listw is None):
        return xtrain, ytrain, x, nn, None
    if not isinstance(listw, Weights):
        listw = Weights(list(listw))
    if (len(listw) != len(nn)):
        raise InvalidInputError('expected ' + str(len(nn)) +
            ' weight vectors, got ' + str(len(listw)))
    for i in range(len(nn)):
        if (listw[i].size != nn[i].size):
            raise InvalidInputError('neighbor and weight counts differ for '
                'query ' + str(i))
    return xtrain, ytrain, x, nn, listw.w

def _local_batch(rows, xtrain, ytrain, x, nn, w, fun, nlv, verbose, kwargs):
    """Fit and predict the queries of one batch.

    Parameters
    ----------
    rows : ndarray(B) of int
        query indices
    nlv : list of int or None
        numbers of latent variables, None for models without latent variables

    Returns
    -------
    ndarray(L,B,Q)
        predictions, L = 1 if nlv is None
    """
    Q = ytrain.shape[1]
    L = 1 if (nlv is None) else len(nlv)
    out = np.empty((L,rows.size,Q))
    if (nlv is not None):
        kwargs = dict(kwargs, nlv=max(nlv))
    for j, i in enumerate(rows):
        if verbose:
            logger.debug('query %d', i)
        s = nn[i]
        ys = ytrain[s,:]

        # homogeneous neighborhood, e.g. a single class: no model needed

        if ((Q == 1) and np.all(ys == ys[0,0])):
            out[:,j,:] = ys[0,0]
            continue
        if (w is None):
            fm = fun(xtrain[s,:], ys, **kwargs)
        else:
            fm = fun(xtrain[s,:], ys, w[i], **kwargs)
        xi = x[i:i+1,:]
        if (nlv is None):
            out[0,j,:] = np.asarray(fm.predict(xi)).reshape(-1)
        else:
            for l, a in enumerate(nlv):
                out[l,j,:] = np.asarray(fm.predict(xi, nlv=a)).reshape(-1)
    return out

def _scatter_gather(m, Q, n_jobs, task, nl):
    """Run task over batches of query indices and gather the blocks.
    """
    pred = np.empty((nl,m,Q))
    if (m == 0):
        return pred
    nb = min(m, 4 * effective_n_jobs(n_jobs))
    batches = np.array_split(np.arange(m), nb)
    blocks = Parallel(n_jobs=n_jobs, prefer='threads')(
        delayed(task)(rows) for rows in batches)
    for rows, block in zip(batches, blocks):
        pred[:,rows,:] = block
    return pred

def locw(xtrain, ytrain, x, listnn, listw=None, fun=plskern, n_jobs=None,
    verbose=False, **kwargs):
    """Predict each query with a model fitted on its neighborhood.

    If the neighbors of a query share a single response value (e.g. the same
    class) that value is predicted without fitting.

    Parameters
    ----------
    xtrain : array_like(N,D)
        training predictors
    ytrain : array_like(N,Q) or array_like(N)
        training responses
    x : array_like(M,D)
        query predictors
    listnn : Neighbors object or list(M) of ndarray of int
        neighborhood of each query, indices into xtrain
    listw : Weights object, list(M) of ndarray, or None
        neighbor weights of each query
    fun : callable
        fun(x, y[, weights], **kwargs) returning a fitted model with a
        predict(x) method
    n_jobs : int or None
        number of joblib workers
    verbose : bool
        if set, progress is logged at DEBUG level
    kwargs : dict
        additional arguments passed to fun

    Returns
    -------
    ndarray(M,Q)
        predictions
    """
    assert callable(fun)
    assert isinstance(verbose, bool)

    xtrain, ytrain, x, nn, w = _check_local(xtrain, ytrain, x, listnn, listw)

    def task(rows):
        return _local_batch(rows, xtrain, ytrain, x, nn, w, fun, None,
            verbose, kwargs)

    return _scatter_gather(x.shape[0], ytrain.shape[1], n_jobs, task, 1)[0]

def locwlv(xtrain, ytrain, x, listnn, listw=None, fun=plskern, nlv=1,
    n_jobs=None, verbose=False, **kwargs):
    """Predict each query with a latent variable model fitted on its
    neighborhood, for one or several numbers of latent variables.

    The local model is fitted once with the largest number of latent variables
    and truncated for the smaller ones.

    Parameters
    ----------
    xtrain : array_like(N,D)
        training predictors
    ytrain : array_like(N,Q) or array_like(N)
        training responses
    x : array_like(M,D)
        query predictors
    listnn : Neighbors object or list(M) of ndarray of int
        neighborhood of each query, indices into xtrain
    listw : Weights object, list(M) of ndarray, or None
        neighbor weights of each query
    fun : callable
        fun(x, y[, weights], nlv=nlv, **kwargs) returning a fitted model with
        a predict(x, nlv=nlv) method
    nlv : int or iterable of int
        number(s) of latent variables, clamped to [0,D]
    n_jobs : int or None
        number of joblib workers
    verbose : bool
        if set, progress is logged at DEBUG level
    kwargs : dict
        additional arguments passed to fun

    Returns
    -------
    ndarray(M,Q)
        predictions, or
    list of ndarray(M,Q)
        predictions in ascending order of latent variables if more than one
        number was requested
    """
    assert callable(fun)
    assert isinstance(verbose, bool)

    xtrain, ytrain, x, nn, w = _check_local(xtrain, ytrain, x, listnn, listw)
    v, multi = nlv_values(nlv, xtrain.shape[1])

    def task(rows):
        return _local_batch(rows, xtrain, ytrain, x, nn, w, fun, v,
            verbose, kwargs)

    pred = _scatter_gather(x.shape[0], ytrain.shape[1], n_jobs, task, len(v))
    if multi:
        return [pred[l] for l in range(len(v))]
    return pred[0]

### EOF local.py _______________________________________________________________
