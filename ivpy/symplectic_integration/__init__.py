r"""
Implements a family of symplectic integrators for separable Hamiltonians.  A symplectic integrator is one which
preserves the symplectic form on the cotangent bundle of phase space.  Coordinates on phase space are typically
written as (q,p), which denote the position and momentum coordinates respectively.  A symplectic integrator will
then integrate Hamilton's equations

    dq/dt =   \partial H / \partial p
    dp/dt = - \partial H / \partial q

where H(q,p) is the Hamiltonian (aka total energy) of the system.  A Hamiltonian is a scalar function H(q,p)
defining the total energy for the system.  A separable Hamiltonian has the form

    H(q,p) = K(p) + V(q)

where K and V are prototypically the kinetic and potential energy functions, respectively.  A symplectic
integrator doesn't control its error, but nearly conserves H over long times, which a generic method of the
same order doesn't.

References

    https://en.wikipedia.org/wiki/Symplectic_integrator
    https://en.wikipedia.org/wiki/Energy_drift
"""

from . import separable_hamiltonian
