"""
FILE:                   errors.py
COPYRIGHT:              (c) 2024 Finnish Meteorological Institute
                        P.O. BOX 503
                        FI-00101 Helsinki, Finland
                        https://www.fmi.fi/
LICENCE:                MIT
AUTHOR:                 Terhi Mäkinen (terhi.makinen@fmi.fi)
DESCRIPTION:

This module provides the exception and warning types raised by the locally
weighted latent variable engine.
"""

class InvalidInputError(ValueError):
    """Malformed input: mismatching shapes, empty reference set, k < 1, or
    invalid weights.
    """
    pass

class EmptyNeighborhoodError(InvalidInputError):
    """A query has an empty neighbor list.
    """
    pass

class NumericalError(ArithmeticError):
    """Singular or near-singular matrix encountered in a factorization.
    """
    pass

class RankDeficiencyWarning(RuntimeWarning):
    """A latent variable direction could not be extracted; the component is
    retained as a zero vector.
    """
    pass

### EOF errors.py ______________________________________________________________
