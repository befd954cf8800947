"""
Step algorithms for general (non-Hamiltonian) systems: explicit Runge-Kutta methods of ordinary and embedded
(error-estimating) types, and the step-size controller that drives the embedded ones adaptively.
"""

from . import adaptive
from . import rungekutta
from . import step
