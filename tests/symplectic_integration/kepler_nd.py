import ivpy
import numpy as np

class KeplerNd:
    """
    Defines the various geometric-mechanical structures of a Kepler system (stationary sun and moving planet)
    in dimension N >= 2.  The gravitational potential in R^3 is 1/r, but in general R^N the potential energy
    function is taken to be a fundamental solution (i.e. radially symmetric with some particular normalization)
    to the Laplace equation.  Therefore it is:

        V_2(r) = c_2*log(r)     for N == 2,
        V_N(r) = -c_N*r^(2-N)   for N >= 3,

    where c_k is a positive, normalizing constant, which in this class is assumed to be 1.  With this
    normalization, the planet orbits circularly with unit speed at unit radius in R^2 and R^3.

    Coordinates are assumed to have shape (2,N), i.e. np.array([q,p]), where q and p are the position and
    momentum of the planet respectively.
    """

    @staticmethod
    def K (p):
        """Kinetic energy is a function of the momentum only.  It is assumed that the planet has unit mass."""
        return 0.5*np.sum(np.square(p))

    @staticmethod
    def V (q):
        """Potential energy is a function of the position only."""
        N = q.shape[0]
        r = np.linalg.norm(q)
        if N == 2:
            return np.log(r)
        else:
            return -r**(2-N)

    @staticmethod
    def H (coordinates):
        """The Hamiltonian is the sum of kinetic and potential energy."""
        return KeplerNd.K(coordinates[1,:]) + KeplerNd.V(coordinates[0,:])

    @staticmethod
    def angular_momentum (coordinates):
        """The (q_i*p_j - q_j*p_i) components of the angular momentum 2-form, which is conserved by the flow."""
        q = coordinates[0,:]
        p = coordinates[1,:]
        return np.outer(q, p) - np.outer(p, q)

    @staticmethod
    def dK_dp (p):
        return p

    @staticmethod
    def dV_dq (q):
        N = q.shape[0]
        if N == 2:
            return q / np.sum(np.square(q))
        else:
            r_squared = np.sum(np.square(q))
            return (N-2) * r_squared**(-N/2) * q

    @staticmethod
    def system ():
        return ivpy.SeparableHamiltonian(dK_dp=KeplerNd.dK_dp, dV_dq=KeplerNd.dV_dq, K=KeplerNd.K, V=KeplerNd.V)

    @staticmethod
    def circular_orbit_initial_coordinates (N):
        qp_0 = np.zeros((2,N), dtype=float)
        qp_0[0,0] = 1.0
        qp_0[1,1] = 1.0
        return qp_0
