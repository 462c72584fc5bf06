# test the models.py module
#
# Usage: python -m unittest tests.test_models

import unittest
import numpy as np
from sklearn.cross_decomposition import PLSRegression
from lwlv import interfaces as ifc
from lwlv import models
from lwlv.errors import InvalidInputError, RankDeficiencyWarning

def linear_data(n, p, q=1, noise=0.1, seed=0):
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n,p)) + rng.normal(size=(1,p))
    B = rng.normal(size=(p,q))
    Y = np.matmul(X, B) + 1.5 + noise * rng.normal(size=(n,q))
    return X, Y, rng

class TestPlsKern(unittest.TestCase):
    def test_sklearn(self):
        """ Test unweighted PLS1 against scikit-learn.
        """
        X, Y, rng = linear_data(40, 6)
        Xt = rng.normal(size=(7,6))
        for a in range(1, 5):
            ref = PLSRegression(n_components=a, scale=False).fit(X, Y[:,0])
            fm = models.plskern(X, Y[:,0], nlv=a)
            np.testing.assert_allclose(fm.predict(Xt).ravel(),
                np.asarray(ref.predict(Xt)).ravel(), rtol=1e-6, atol=1e-8)     #

    def test_sklearn_multi(self):
        """ Test unweighted PLS2 against scikit-learn.
        """
        X, Y, rng = linear_data(40, 6, q=3, seed=1)
        Xt = rng.normal(size=(5,6))
        for a in (1, 3):
            ref = PLSRegression(n_components=a, scale=False, max_iter=5000,
                tol=1e-14).fit(X, Y)
            fm = models.plskern(X, Y, nlv=a)
            np.testing.assert_allclose(fm.predict(Xt),
                np.asarray(ref.predict(Xt)).reshape((5,3)), rtol=1e-5,
                atol=1e-5)                                                     #

    def test_truncation(self):
        """ Test that a model truncated to a latent variables predicts as a
            model fitted with a latent variables.
        """
        X, Y, rng = linear_data(30, 5, q=2, seed=2)
        w = rng.uniform(0.1, 1.0, 30)
        Xt = rng.normal(size=(6,5))
        fm = models.plskern(X, Y, w, nlv=5)
        for a in range(6):
            fa = models.plskern(X, Y, w, nlv=a)
            np.testing.assert_allclose(fm.predict(Xt, nlv=a), fa.predict(Xt),
                rtol=1e-10, atol=1e-10)                                        #
        pred = fm.predict(Xt, nlv=range(1, 4))
        self.assertEqual(len(pred), 3)                                         #
        for a in range(1, 4):
            np.testing.assert_allclose(pred[a-1], fm.predict(Xt, nlv=a))       #

    def test_clamp(self):
        """ Test clamping of the number of latent variables.
        """
        X, Y, rng = linear_data(10, 3, seed=3)
        fm = models.plskern(X, Y, nlv=5)
        self.assertEqual(fm.nlv, 3)                                            #
        self.assertEqual(fm.R.shape, (3,3))                                    #
        Xt = rng.normal(size=(4,3))
        np.testing.assert_array_equal(fm.predict(Xt, nlv=7),
            fm.predict(Xt, nlv=3))                                             #
        np.testing.assert_array_equal(fm.predict(Xt, nlv=-1),
            fm.predict(Xt, nlv=0))                                             #
        pred = fm.predict(Xt, nlv=[3, 4, 9])
        self.assertIsInstance(pred, np.ndarray)                                #

    def test_zero_lv(self):
        """ Test that zero latent variables predict the weighted mean.
        """
        X, Y, rng = linear_data(20, 4, q=2, seed=4)
        w = rng.uniform(0, 1, 20)
        fm = models.plskern(X, Y, w, nlv=0)
        pred = fm.predict(X[0:3,:])
        ym = np.matmul(w / np.sum(w), Y)
        for i in range(3):
            np.testing.assert_allclose(pred[i,:], ym)                          #

    def test_rank_deficiency(self):
        """ Test that a degenerate component is retained as zeros.
        """
        rng = np.random.default_rng(5)
        a = rng.normal(size=20)
        X = np.column_stack((a, a, rng.normal(size=20)))
        y = X[:,0] - 2 * X[:,2] + 0.1 * rng.normal(size=20)
        with self.assertWarns(RankDeficiencyWarning):
            fm = models.plskern(X, y, nlv=3)
        self.assertEqual(fm.nlv, 3)                                            #
        np.testing.assert_array_equal(fm.R[:,2], 0)                            #
        self.assertEqual(fm.TT[2], 0)                                          #
        pred = fm.predict(X)
        self.assertTrue(np.all(np.isfinite(pred)))                             #
        np.testing.assert_allclose(pred, fm.predict(X, nlv=2))                 #

    def test_weights(self):
        """ Test observation weights.
        """
        X, Y, rng = linear_data(20, 4, seed=6)
        Xt = rng.normal(size=(5,4))

        # uniform and unnormalized weights

        f0 = models.plskern(X, Y, nlv=3)
        f1 = models.plskern(X, Y, np.full(20, 7.0), nlv=3)
        np.testing.assert_allclose(f1.predict(Xt), f0.predict(Xt))             #
        np.testing.assert_allclose(np.sum(f1.weights), 1)                      #

        # an integer weight duplicates an observation

        w = np.ones(20)
        w[0] = 2
        f2 = models.plskern(X, Y, w, nlv=3)
        f3 = models.plskern(np.vstack((X[0:1,:], X)), np.vstack((Y[0:1,:], Y)),
            nlv=3)
        np.testing.assert_allclose(f2.predict(Xt), f3.predict(Xt), rtol=1e-8) #

        # a zero weight removes an observation

        w = np.ones(20)
        w[4] = 0
        f4 = models.plskern(X, Y, w, nlv=3)
        f5 = models.plskern(np.delete(X, 4, axis=0), np.delete(Y, 4, axis=0),
            nlv=3)
        np.testing.assert_allclose(f4.predict(Xt), f5.predict(Xt), rtol=1e-8) #

    def test_unbiased(self):
        """ Test that the intercept makes weighted fitted values unbiased.
        """
        X, Y, rng = linear_data(25, 5, q=2, seed=7)
        w = rng.uniform(0.2, 3.0, 25)
        fm = models.plskern(X, Y, w, nlv=2)
        wn = w / np.sum(w)
        np.testing.assert_allclose(np.matmul(wn, fm.predict(X)),
            np.matmul(wn, Y))                                                  #
        B, b0 = fm.coef()
        self.assertEqual(B.shape, (5,2))                                       #
        self.assertEqual(b0.shape, (1,2))                                      #
        B0, b00 = fm.coef(nlv=0)
        np.testing.assert_array_equal(B0, 0)                                   #

    def test_scale(self):
        """ Test column scaling against manual standardization.
        """
        X, Y, rng = linear_data(30, 4, seed=8)
        X[:,1] *= 50.0
        Xt = rng.normal(size=(4,4))
        mx, sx = np.mean(X, axis=0), np.std(X, axis=0)
        my, sy = np.mean(Y, axis=0), np.std(Y, axis=0)
        fm = models.plskern(X, Y, nlv=2, scale=True)
        fr = models.plskern((X - mx) / sx, (Y - my) / sy, nlv=2)
        np.testing.assert_allclose(fm.predict(Xt),
            fr.predict((Xt - mx) / sx) * sy + my, rtol=1e-8, atol=1e-8)       #
        np.testing.assert_allclose(fm.xscales, sx)                             #

    def test_transform(self):
        """ Test scores of the training data and explained variance.
        """
        X, Y, rng = linear_data(30, 4, seed=9)
        fm = models.plskern(X, Y, nlv=4)
        np.testing.assert_allclose(fm.transform(X), fm.T, atol=1e-10)          #
        np.testing.assert_allclose(fm.transform(X, nlv=2), fm.T[:,0:2],
            atol=1e-10)                                                        #
        s = fm.summary(X)
        np.testing.assert_array_equal(s['nlv'], [1, 2, 3, 4])                  #
        self.assertTrue(np.all(np.diff(s['cumpvar']) >= 0))                    #
        np.testing.assert_almost_equal(s['cumpvar'][-1], 1)                    #

    def test_interface(self):
        X, Y, rng = linear_data(10, 3, seed=10)
        fm = models.PlsKern(nlv=2)
        self.assertIsInstance(fm, ifc.ILVModel)                                #
        self.assertFalse(fm.is_fitted)                                         #
        self.assertIs(fm.fit(X, Y), fm)                                        #
        self.assertTrue(fm.is_fitted)                                          #
        with self.assertRaises(InvalidInputError):
            models.plskern(X, Y[0:5,:], nlv=2)                                 #
        with self.assertRaises(InvalidInputError):
            fm.predict(X[:,0:2])                                               #
        with self.assertRaises(InvalidInputError):
            models.plskern(X, Y, -np.ones(10), nlv=2)                          #

class TestMlr(unittest.TestCase):
    def test_weighted(self):
        """ Test weighted least squares against a direct solution.
        """
        X, Y, rng = linear_data(30, 4, q=2, seed=20)
        w = rng.uniform(0.1, 2.0, 30)
        sw = w.reshape((-1,1))**0.5
        Z = np.hstack((np.ones((30,1)), X))
        b = np.linalg.lstsq(sw * Z, sw * Y, rcond=None)[0]
        fm = models.mlr(X, Y, w)
        self.assertIsInstance(fm, ifc.IModel)                                  #
        B, b0 = fm.coef()
        np.testing.assert_allclose(B, b[1:,:], rtol=1e-8)                      #
        np.testing.assert_allclose(b0.ravel(), b[0,:], rtol=1e-8)              #
        Xt = rng.normal(size=(3,4))
        np.testing.assert_allclose(fm.predict(Xt),
            b[0,:] + np.matmul(Xt, b[1:,:]), rtol=1e-8)                        #

    def test_noint(self):
        X, Y, rng = linear_data(30, 4, seed=21)
        b = np.linalg.lstsq(X, Y, rcond=None)[0]
        fm = models.mlr(X, Y, noint=True)
        np.testing.assert_allclose(fm.coef()[0], b, rtol=1e-8)                 #
        np.testing.assert_array_equal(fm.coef()[1], 0)                         #

    def test_rank_deficient(self):
        """ Test that collinear predictors give a finite solution.
        """
        rng = np.random.default_rng(22)
        a = rng.normal(size=15)
        X = np.column_stack((a, a))
        y = 3 * a + 1
        fm = models.mlr(X, y)
        np.testing.assert_allclose(fm.predict(X).ravel(), y, rtol=1e-8)       #

if __name__ == '__main__':
    unittest.main()
