"""
ivpy solves initial value problems for systems of ordinary differential equations

    dy/dt = f(y, t)
    y(t0) = y0

using interchangeable step algorithms: fixed-step Runge-Kutta methods, adaptive (embedded) Runge-Kutta methods
with step-size control, and symplectic methods for separable Hamiltonian systems.

Example

    import numpy as np
    import ivpy

    A = np.array([[1.0, -1.0], [2.0, -3.0]])
    t_v, y_t = ivpy.odeint(
        ivpy.RungeKutta_4(),
        lambda y, t: A @ y,
        np.array([-1.0, 1.0]),
        ivpy.FixedHorizon(t0=0.0, duration=2.0, dt=1.0e-3),
    )
"""

__version__ = '0.1.0'

from . import exceptions
from . import integration
from . import norm
from . import symplectic_integration
from . import timespec
from .driver import Trajectory, odeint
from .exceptions import IntegrationDiverged, IntegrationError, InvalidStep, StepSizeUnderflow
from .integration.adaptive import AdaptiveConfig
from .integration.rungekutta import BogackiShampine_3_2, DormandPrince_5_4, Euler, Midpoint, RungeKutta_4, RungeKuttaFehlberg_4_5
from .symplectic_integration.separable_hamiltonian import SeparableHamiltonian, leapfrog, ruth3, ruth4, symplectic_euler, velocity_verlet
from .timespec import ExplicitPoints, FixedHorizon, Span
