"""
Implements a family of separable Hamiltonian symplectic integrators, where the family is parameterized by the
coefficients which define the weights for each update step.  A separable Hamiltonian has the form

    H(q,p) = K(p) + V(q)

where K and V are prototypically the kinetic and potential energy functions, respectively.  In this case,
Hamilton's equations are

    dq/dt =   \\partial K / \\partial p
    dp/dt = - \\partial V / \\partial q

and a leapfrog technique is used to implement the integration using the provided update step coefficients.

A single set of coordinates is represented with a numpy array qp of shape (2,...), where qp[0] is the position
q and qp[1] is the momentum p.

For convenience, this module provides the coefficients of several methods in the module-level
update_step_coefficients variable, and a ready-made stepper for each of them (symplectic_euler, leapfrog,
velocity_verlet, ruth3, ruth4).

References

    https://en.wikipedia.org/wiki/Symplectic_integrator
    https://en.wikipedia.org/wiki/Energy_drift
    https://en.wikipedia.org/wiki/Leapfrog_integration
"""

import collections
import numpy as np
import typing
from ..exceptions import InvalidStep
from ..integration.step import StepResult, validate_step_size

def __make_ruth4_update_step_coefficients ():
    cbrt_2 = 2.0**(1.0/3.0)
    b = 2.0 - cbrt_2
    c_0 = c_3 = 0.5/b
    c_1 = c_2 = 0.5*(1.0 - cbrt_2)/b
    d_0 = d_2 = 1.0/b
    d_1 = -cbrt_2/b
    d_3 = 0.0
    return np.array([
        [c_0, c_1, c_2, c_3],
        [d_0, d_1, d_2, d_3]
    ])

UpdateStepCoefficients = collections.namedtuple('UpdateStepCoefficients', ['euler1', 'leapfrog2', 'verlet2', 'ruth3', 'ruth4'])
update_step_coefficients = UpdateStepCoefficients(
    # euler1
    np.array([
        [1.0],
        [1.0]
    ]),
    # leapfrog2 -- position half-step, momentum full step, position half-step.
    np.array([
        [0.5, 0.5],
        [1.0, 0.0]
    ]),
    # verlet2 -- momentum half-step, position full step, momentum half-step.
    np.array([
        [0.0, 1.0],
        [0.5, 0.5]
    ]),
    # ruth3
    np.array([
        [1.0, -2.0/3.0, 2.0/3.0],
        [-1.0/24.0, 0.75, 7.0/24.0]
    ]),
    # ruth4
    __make_ruth4_update_step_coefficients()
)

class SeparableHamiltonian:
    """
    The right-hand side of Hamilton's equations for a separable Hamiltonian, given by the partial derivatives

        dK_dp : p -> \\partial K / \\partial p
        dV_dq : q -> \\partial V / \\partial q

    each of which should accept and return an array having the shape of q (equivalently, of p).

    K and V may optionally be given, in which case the Hamiltonian itself can be evaluated using H.

    An instance is also callable as an ordinary right-hand side, i.e. system(qp, t) returns the symplectic
    gradient (dq/dt, dp/dt) stacked in the same shape as qp, so that the same system can be integrated with
    non-symplectic methods for comparison.
    """

    def __init__ (
        self,
        *,
        dK_dp:typing.Callable[[np.ndarray],np.ndarray],
        dV_dq:typing.Callable[[np.ndarray],np.ndarray],
        K:typing.Optional[typing.Callable[[np.ndarray],float]]=None,
        V:typing.Optional[typing.Callable[[np.ndarray],float]]=None,
    ) -> None:
        if not callable(dK_dp) or not callable(dV_dq):
            raise InvalidStep('dK_dp and dV_dq must both be callable')
        self.dK_dp  = dK_dp
        self.dV_dq  = dV_dq
        self.K      = K
        self.V      = V

    def H (self, qp:np.ndarray) -> float:
        """The Hamiltonian (total energy) K(p) + V(q)."""
        if self.K is None or self.V is None:
            raise TypeError('H requires both K and V to have been given')
        return self.K(qp[1]) + self.V(qp[0])

    def __call__ (self, qp:np.ndarray, t:float) -> np.ndarray:
        return np.stack([self.dK_dp(qp[1]), -self.dV_dq(qp[0])])

class SymplecticStepper:
    """
    A separable Hamiltonian symplectic integrator defined by its update step coefficients.

    -   coefficients should be a numpy.ndarray with shape (2,K), where K is the number of leapfrog update step
        pairs.  Row 0 and row 1 give the weights of the position and momentum updates respectively; each step
        iterates over the (c,d) columns, performing

            q += dt*c*dK_dp(p)
            p -= dt*d*dV_dq(q)

        in that order.  The order of these updates is what makes the method symplectic, and must not be
        changed.  The rows of coefficients must sum to one, i.e.

            all(numpy.sum(coefficients[i]) == 1.0 for i in [0,1])

        (within numerical tolerance), and are described at https://en.wikipedia.org/wiki/Symplectic_integrator

    -   order is the order of the resulting method.

    These methods do not estimate their error; instead, they nearly conserve the Hamiltonian over long times.
    """

    def __init__ (self, coefficients:np.ndarray, *, order:int, name:str='SymplecticStepper') -> None:
        coefficients = np.array(coefficients, dtype=np.float64)
        if len(coefficients.shape) != 2 or coefficients.shape[0] != 2 or coefficients.shape[1] == 0:
            raise ValueError(f'coefficients must have shape (2,K), where K > 0 (but coefficients.shape was {coefficients.shape})')
        if not np.allclose(np.sum(coefficients, axis=1), 1.0):
            raise ValueError('rows of coefficients must sum to 1.0 (within numerical tolerance)')
        if order <= 0:
            raise ValueError(f'order must be positive (but was {order})')

        coefficients.setflags(write=False)
        self.coefficients   = coefficients
        self.__order        = order
        self.__name         = name

    def order (self) -> int:
        return self.__order

    def is_adaptive (self) -> bool:
        return False

    def check_compatibility (self, rhs, y_initial) -> None:
        """Raises InvalidStep unless rhs is a SeparableHamiltonian and y_initial has the (2,...) phase space shape."""
        if not isinstance(rhs, SeparableHamiltonian):
            raise InvalidStep(f'{self.__name} requires the right-hand side to be a SeparableHamiltonian (but it was {rhs!r})')
        y_initial_shape = np.shape(y_initial)
        if len(y_initial_shape) == 0 or y_initial_shape[0] != 2:
            raise InvalidStep(f'{self.__name} requires coordinates of shape (2,...), i.e. stacked (q,p) (but the shape was {y_initial_shape})')

    def step (self, system:SeparableHamiltonian, qp:np.ndarray, t:float, dt:float) -> StepResult:
        validate_step_size(dt)

        q = np.copy(qp[0])
        p = np.copy(qp[1])
        # Iterate over (c,d) pairs and perform the leapfrog update steps.  An update having zero weight is
        # skipped, which saves a function evaluation without changing the result.
        for c,d in zip(self.coefficients[0], self.coefficients[1]):
            if c != 0.0:
                q = q + dt*c*system.dK_dp(p)
            if d != 0.0:
                p = p - dt*d*system.dV_dq(q)

        return StepResult(np.stack([q, p]), t + dt, None)

    def __repr__ (self) -> str:
        return self.__name

symplectic_euler    = SymplecticStepper(update_step_coefficients.euler1, order=1, name='symplectic_euler')
leapfrog            = SymplecticStepper(update_step_coefficients.leapfrog2, order=2, name='leapfrog')
velocity_verlet     = SymplecticStepper(update_step_coefficients.verlet2, order=2, name='velocity_verlet')
ruth3               = SymplecticStepper(update_step_coefficients.ruth3, order=3, name='ruth3')
ruth4               = SymplecticStepper(update_step_coefficients.ruth4, order=4, name='ruth4')
