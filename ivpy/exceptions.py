import numpy as np
import typing

class IntegrationError(Exception):
    """
    Integrating an ODE can be an expensive operation, and getting some obscure numerical error
    during integration and losing all results is frustrating.  Thus every failure raised by the
    integrators carries the results computed so far, so that the cause of the failure can be more
    readily determined, such as by plotting the salvaged curve.

    The salvaged_y_t attribute will be a numpy.ndarray of shape (S,...), where S is the number of
    successfully computed samples thus far (successful meaning finite and accepted), and the ...
    denotes the shape of the initial conditions passed into the integrator.  The corresponding time
    values, having shape (S,), are stored in the salvaged_t_v attribute.  The intent is for the
    salvaged values to all be valid (e.g. no infinities or NaNs).

    A failure is terminal for the integration call that raised it; the salvaged samples are never
    returned as a successful result.
    """

    def __init__ (self, message:str, *, salvaged_t_v:typing.Optional[np.ndarray]=None, salvaged_y_t:typing.Optional[np.ndarray]=None) -> None:
        super().__init__(message)

        if salvaged_t_v is None:
            salvaged_t_v = np.zeros((0,), dtype=np.float64)
        if salvaged_y_t is None:
            salvaged_y_t = np.zeros((0,), dtype=np.float64)
        if len(salvaged_t_v) != len(salvaged_y_t):
            raise ValueError(f'expected len(salvaged_t_v) == len(salvaged_y_t), but got {len(salvaged_t_v)} and {len(salvaged_y_t)}')

        self.salvaged_t_v = salvaged_t_v
        self.salvaged_y_t = salvaged_y_t

class InvalidStep(IntegrationError, ValueError):
    """Raised for a malformed time specification, configuration, or step size.  This is a caller error."""

    def __init__ (self, message:str) -> None:
        super().__init__(message)

class IntegrationDiverged(IntegrationError, ArithmeticError):
    """
    Raised when a step produces a non-finite (NaN or infinite) state.  The t and y attributes hold the
    last valid sample, i.e. the one from which the diverging step was taken.
    """

    def __init__ (self, message:str, *, t:float, y:typing.Any, salvaged_t_v=None, salvaged_y_t=None) -> None:
        super().__init__(message, salvaged_t_v=salvaged_t_v, salvaged_y_t=salvaged_y_t)
        self.t = t
        self.y = y

class StepSizeUnderflow(IntegrationError, ArithmeticError):
    """
    Raised when the adaptive controller can not satisfy the error tolerance with a step size above
    its minimum, which typically means the problem is too stiff for the method and tolerance.  The
    t and y attributes hold the sample from which no acceptable step could be found, and t_step
    holds the last attempted step size.
    """

    def __init__ (self, message:str, *, t:float, y:typing.Any, t_step:float, salvaged_t_v=None, salvaged_y_t=None) -> None:
        super().__init__(message, salvaged_t_v=salvaged_t_v, salvaged_y_t=salvaged_y_t)
        self.t = t
        self.y = y
        self.t_step = t_step
