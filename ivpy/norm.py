"""
Norms used to turn the difference between the two results of an embedded Runge-Kutta pair into a
scalar local truncation error estimate.  Any callable taking a state and returning a nonnegative
float can be used in place of these.
"""

import numpy as np

def euclidean (x) -> float:
    """The L2 norm of x, regarded as a flat vector.  This is the default."""
    return float(np.sqrt(np.sum(np.square(np.asarray(x, dtype=np.float64)))))

def max_abs (x) -> float:
    """The infinity norm of x, i.e. the largest absolute value of any component."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.max(np.abs(x)))

def rms (x) -> float:
    """Root mean square of the components of x.  Unlike euclidean, this does not grow with the dimension."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(x))))
