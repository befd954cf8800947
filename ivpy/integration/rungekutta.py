"""
Implements explicit Runge-Kutta integration methods, of ordinary (non-error-estimating) and error-estimating types.

Every method provides

    step(rhs, y, t, dt) -> StepResult

and the error-estimating (embedded) methods additionally provide

    step_with_error(rhs, y, t, dt) -> StepResult

where rhs(y, t) evaluates the derivative of the state y at time t.  The state is only ever combined linearly
(added to other states and multiplied by scalars), so any value supporting those operations can be used,
though in practice it's a numpy.ndarray or a float.
"""

import abc
import numpy as np
import typing
from .. import norm as _norm
from ..exceptions import InvalidStep
from .step import StepResult, validate_step_size

def _linear_combination (coefficient_v:np.ndarray, k_v:typing.Sequence[typing.Any]) -> typing.Any:
    """
    Returns the sum of coefficient*k over the pairs of coefficient_v and k_v, skipping the terms having zero
    coefficient.  Returns None if every coefficient is zero.
    """
    retval = None
    for coefficient,k in zip(coefficient_v, k_v):
        if coefficient == 0.0:
            continue
        term = coefficient*k
        retval = term if retval is None else retval + term
    return retval

class RungeKutta(metaclass=abc.ABCMeta):
    """
    References:
    -   Wikipedia RK article - https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods
    -   List of RK methods - https://en.wikipedia.org/wiki/List_of_Runge%E2%80%93Kutta_methods
    -   Appendix A; Runge-Kutta Methods - https://www.uni-muenster.de/imperia/md/content/physik_tp/lectures/ss2017/numerische_Methoden_fuer_komplexe_Systeme_II/rkm-1.pdf
    """

    @classmethod
    @abc.abstractmethod
    def order (cls) -> int:
        """
        Should return the order of this method.  If a method has order p, then its local truncation error
        will be on the order of O(dt^(p+1)), and the total accumulated error is on the order of O(dt^p).
        Note that there is no simple relationship between order and stage count.

        For an embedded method, this is the order of the result that is propagated (see b).

        From https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods#Explicit_Runge%E2%80%93Kutta_methods

            In general, if an explicit s-stage Runge–Kutta method has order p, then it can be proven that
            the number of stages must satisfy s >= p, and if p >= 5, then s >= p+1.  However, it is not
            known whether these bounds are sharp in all cases.
        """
        raise NotImplementedError('subclass must implement this in order to use it')

    # Note: @abc.abstractmethod should be the innermost decorator;
    # see https://docs.python.org/3/library/abc.html#abc.abstractmethod
    @classmethod
    @abc.abstractmethod
    def a (cls) -> np.ndarray:
        """
        Returns the `a` part of the Butcher tableau of this RK method, which has shape (s,s), where s is
        the stage count.
        See https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods#Adaptive_Runge%E2%80%93Kutta_methods
        """
        raise NotImplementedError('subclass must implement this in order to use it')

    @classmethod
    @abc.abstractmethod
    def b (cls) -> np.ndarray:
        """
        Returns the `b` part of the Butcher tableau of this RK method, i.e. the weights that produce the
        result of the step.  For an embedded method, these are the weights of the higher-order formula.
        See https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods#Adaptive_Runge%E2%80%93Kutta_methods
        """
        raise NotImplementedError('subclass must implement this in order to use it')

    @classmethod
    def b_star (cls) -> np.ndarray:
        """
        Returns the `b*` part of the Butcher tableau of this RK method, i.e. the weights of the embedded,
        lower-order formula, which is only used to estimate the local truncation error.
        See https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods#Adaptive_Runge%E2%80%93Kutta_methods

        Note that a non-embedded Runge-Kutta method does not need to implement this.
        """
        raise NotImplementedError('subclass must implement this in order to use it')

    @classmethod
    def embedded_order (cls) -> int:
        """Returns the order of the formula defined by b_star.  A non-embedded method does not need to implement this."""
        raise NotImplementedError('subclass must implement this in order to use it')

    @classmethod
    @abc.abstractmethod
    def c (cls) -> np.ndarray:
        """
        Returns the `c` part of the Butcher tableau of this RK method.
        See https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods#Adaptive_Runge%E2%80%93Kutta_methods
        """
        raise NotImplementedError('subclass must implement this in order to use it')

    @classmethod
    def is_explicit_method (cls) -> bool:
        """
        Should return true if this is an explicit method (meaning there are certain constraints on the
        Butcher tableau).  Default is False (i.e. no constraint).

        See https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods#Explicit_Runge%E2%80%93Kutta_methods
        """
        return False

    @classmethod
    @abc.abstractmethod
    def is_embedded_method (cls) -> bool:
        """
        Should return true if this is an embedded method (meaning it uses a secondary formula of different
        order to estimate the local truncation error).
        """
        raise NotImplementedError('subclass must implement this in order to use it')

    @classmethod
    def is_adaptive (cls) -> bool:
        """An embedded method can estimate its own error, and can therefore drive the adaptive step-size controller."""
        return cls.is_embedded_method()

    @classmethod
    def validate_method_definition (cls) -> None:
        """
        Will raise an exception if there is any inconsistency in the definition of a, b, c (i.e. the Butcher
        tableau) of this method.  If cls.is_explicit_method returns True, then it will require that a is strictly
        lower-triangular.

        If all checks pass, no exception will be raised.
        """
        a = cls.a()
        if len(a.shape) != 2 or a.shape[0] != a.shape[1]:
            raise TypeError(f'expected a to be a square matrix (but a.shape was {a.shape}')

        stage_count = a.shape[0]
        order = cls.order()
        if order >= 5:
            if not (stage_count >= order+1):
                raise ValueError(f'For a Runge-Kutta method of order >= 5, the number of stages must be >= order+1 (but in this case, order = {order} and stage_count = {stage_count}')
        else:
            if not (stage_count >= order):
                raise ValueError(f'For a Runge-Kutta method of order < 5, the number of stages must be >= order (but in this case, order = {order} and stage_count = {stage_count}')

        if cls.is_explicit_method():
            if np.any(np.triu(a) != 0.0):
                raise ValueError(f'expected a to be strictly lower-triangular because cls.is_explicit_method() was True (but a was\n{a}')

        b = cls.b()
        if len(b.shape) != 1 or b.shape[0] != stage_count:
            raise TypeError(f'expected b to be a vector having dimension {stage_count} (but b.shape was {b.shape})')
        if not np.isclose(np.sum(b), 1.0):
            raise ValueError(f'expected the components of b to sum to 1 (but b was {b})')

        if cls.is_embedded_method():
            b_star = cls.b_star()
            if len(b_star.shape) != 1 or b_star.shape[0] != stage_count:
                raise TypeError(f'expected b_star to be a vector having dimension {stage_count} (but b_star.shape was {b_star.shape})')
            if not np.isclose(np.sum(b_star), 1.0):
                raise ValueError(f'expected the components of b_star to sum to 1 (but b_star was {b_star})')
            if not (cls.embedded_order() < order):
                raise ValueError(f'expected the embedded order (which is {cls.embedded_order()}) to be less than the order (which is {order})')

        c = cls.c()
        if len(c.shape) != 1 or c.shape[0] != stage_count:
            raise TypeError(f'expected c to be a vector having dimension {stage_count} (but c.shape was {c.shape})')
        if not np.allclose(np.sum(a, axis=1), c):
            raise ValueError(f'expected each c[i] to be the sum of row i of a (but c was {c} and a was\n{a}')

        if cls.is_explicit_method():
            if c[0] != 0.0:
                raise ValueError(f'expected c[0] to be zero because cls.is_explicit_method() was true (but c[0] was {c[0]}')

    @classmethod
    def stage_count (cls) -> int:
        return cls.a().shape[0]

class RungeKutta_Explicit(RungeKutta):
    """
    Base class for explicit RK methods.  Instances hold no integration state, so a single instance can be
    used for any number of (possibly concurrent) integrations.

    The norm parameter is used by embedded methods to turn the difference between the results of the two
    formulas into a scalar local truncation error estimate; see ivpy.norm for the predefined choices.
    """

    def __init__ (self, *, norm:typing.Callable[[typing.Any],float]=_norm.euclidean) -> None:
        self.validate_method_definition()
        self.norm = norm

    @classmethod
    def is_explicit_method (cls) -> bool:
        return True

    def check_compatibility (self, rhs, y_initial) -> None:
        """Raises InvalidStep if this method can't integrate rhs starting at y_initial."""
        if not callable(rhs):
            raise InvalidStep(f'expected rhs to be callable as rhs(y, t) (but it was {rhs!r})')

    def __compute_stages (self, rhs, y, t:float, dt:float) -> typing.List[typing.Any]:
        a = self.a()
        c = self.c()

        # Because this is an explicit method, a[0,:] and c[0] are identically zero, so the first iteration
        # reduces to a simpler form.
        k_v = [rhs(y, t)]

        # Do the rest of the iterations using the general form.
        for i in range(1, self.stage_count()):
            increment = _linear_combination(a[i,0:i], k_v)
            k_v.append(rhs(y if increment is None else y + dt*increment, t + dt*c[i]))

        return k_v

    def step (self, rhs, y, t:float, dt:float) -> StepResult:
        """
        Integrates the initial conditions (t,y) using timestep dt and RK method defined by a, b, c (i.e.
        the Butcher tableau of the method), returning the result as StepResult(next_state, next_time, None).
        The returned next_time is exactly t+dt.

        Reference:
        -   https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods#Explicit_Runge%E2%80%93Kutta_methods
        """
        validate_step_size(dt)
        k_v = self.__compute_stages(rhs, y, t, dt)
        return StepResult(y + dt*_linear_combination(self.b(), k_v), t + dt, None)

    def step_with_error (self, rhs, y, t:float, dt:float) -> StepResult:
        """
        Same as step, but also computes the local truncation error estimate

            norm(dt * sum_i (b[i] - b_star[i]) * k[i])

        i.e. the norm of the difference between the higher-order and lower-order results.  The higher-order
        result is the one returned as next_state.  Only embedded methods support this.
        """
        if not self.is_embedded_method():
            raise TypeError(f'{type(self).__name__} is not an embedded method, so it does not estimate its local truncation error')

        validate_step_size(dt)
        k_v = self.__compute_stages(rhs, y, t, dt)
        b = self.b()
        error_combination = _linear_combination(b - self.b_star(), k_v)
        error_estimate = 0.0 if error_combination is None else self.norm(dt*error_combination)
        return StepResult(y + dt*_linear_combination(b, k_v), t + dt, error_estimate)

    def __repr__ (self) -> str:
        return f'{type(self).__name__}()'

class Euler(RungeKutta_Explicit):
    """The explicit (forward) Euler method -- a 1st order method.  Does not do any local truncation error estimation."""

    __a = np.array([[0.0]])
    __b = np.array([1.0])
    __c = np.array([0.0])

    @classmethod
    def order (cls) -> int:
        return 1

    @classmethod
    def a (cls) -> np.ndarray:
        return cls.__a

    @classmethod
    def b (cls) -> np.ndarray:
        return cls.__b

    @classmethod
    def c (cls) -> np.ndarray:
        return cls.__c

    @classmethod
    def is_embedded_method (cls) -> bool:
        return False

class Midpoint(RungeKutta_Explicit):
    """The explicit midpoint method -- a 2nd order method."""

    __a = np.array([
        [0.0, 0.0],
        [0.5, 0.0],
    ])
    __b = np.array([0.0, 1.0])
    __c = np.array([0.0, 0.5])

    @classmethod
    def order (cls) -> int:
        return 2

    @classmethod
    def a (cls) -> np.ndarray:
        return cls.__a

    @classmethod
    def b (cls) -> np.ndarray:
        return cls.__b

    @classmethod
    def c (cls) -> np.ndarray:
        return cls.__c

    @classmethod
    def is_embedded_method (cls) -> bool:
        return False

class RungeKutta_4(RungeKutta_Explicit):
    """
    The classic Runge-Kutta 4 method -- a 4th order method.  Does not do any local truncation error estimation.

    Reference:
    -   https://en.wikipedia.org/wiki/List_of_Runge%E2%80%93Kutta_methods#Classic_fourth-order_method
    """

    # Define the Butcher tableau using class variables, so new np.ndarrays aren't created during the step function.
    __a = np.array([
        [0.0, 0.0, 0.0, 0.0],
        [0.5, 0.0, 0.0, 0.0],
        [0.0, 0.5, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
    ])
    __b = np.array([1/6, 1/3, 1/3, 1/6])
    __c = np.array([0.0, 0.5, 0.5, 1.0])

    @classmethod
    def order (cls) -> int:
        return 4

    @classmethod
    def a (cls) -> np.ndarray:
        return cls.__a

    @classmethod
    def b (cls) -> np.ndarray:
        return cls.__b

    @classmethod
    def c (cls) -> np.ndarray:
        return cls.__c

    @classmethod
    def is_embedded_method (cls) -> bool:
        return False

class BogackiShampine_3_2(RungeKutta_Explicit):
    """
    Bogacki-Shampine 3(2) method.  This is a third-order RK method which uses an embedded second-order method
    to estimate the local truncation error.

    Reference:
    -   https://en.wikipedia.org/wiki/Bogacki%E2%80%93Shampine_method
    """

    __a = np.array([
        [0.0, 0.0 , 0.0, 0.0],
        [1/2, 0.0 , 0.0, 0.0],
        [0.0, 3/4 , 0.0, 0.0],
        [2/9, 1/3 , 4/9, 0.0],
    ])
    __b = np.array([2/9, 1/3, 4/9, 0.0])
    __b_star = np.array([7/24, 1/4, 1/3, 1/8])
    __c = np.array([0.0, 1/2, 3/4, 1.0])

    @classmethod
    def order (cls) -> int:
        return 3

    @classmethod
    def embedded_order (cls) -> int:
        return 2

    @classmethod
    def a (cls) -> np.ndarray:
        return cls.__a

    @classmethod
    def b (cls) -> np.ndarray:
        return cls.__b

    @classmethod
    def b_star (cls) -> np.ndarray:
        return cls.__b_star

    @classmethod
    def c (cls) -> np.ndarray:
        return cls.__c

    @classmethod
    def is_embedded_method (cls) -> bool:
        return True

class RungeKuttaFehlberg_4_5(RungeKutta_Explicit):
    """
    Runge-Kutta-Fehlberg 4(5) method.  The fifth-order result is the one that is propagated, and the difference
    from the fourth-order result is the local truncation error estimate.

    Reference:
    -   https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta%E2%80%93Fehlberg_method
    """

    # Define the Butcher tableau using class variables, so new np.ndarrays aren't created during the step function.
    __a = np.array([
        [   0.0   ,     0.0   ,     0.0   ,    0.0   ,   0.0 , 0.0],
        [   1/4   ,     0.0   ,     0.0   ,    0.0   ,   0.0 , 0.0],
        [   3/32  ,     9/32  ,     0.0   ,    0.0   ,   0.0 , 0.0],
        [1932/2197, -7200/2197,  7296/2197,    0.0   ,   0.0 , 0.0],
        [ 439/216 ,    -8.0   ,  3680/513 , -845/4104,   0.0 , 0.0],
        [  -8/27  ,     2.0   , -3544/2565, 1859/4104, -11/40, 0.0],
    ])
    __b = np.array([16/135, 0.0, 6656/12825, 28561/56430, -9/50, 2/55])
    __b_star = np.array([25/216, 0.0, 1408/2565, 2197/4104, -1/5, 0])
    __c = np.array([0.0, 1/4, 3/8, 12/13, 1.0, 1/2])

    @classmethod
    def order (cls) -> int:
        return 5

    @classmethod
    def embedded_order (cls) -> int:
        return 4

    @classmethod
    def a (cls) -> np.ndarray:
        return cls.__a

    @classmethod
    def b (cls) -> np.ndarray:
        return cls.__b

    @classmethod
    def b_star (cls) -> np.ndarray:
        return cls.__b_star

    @classmethod
    def c (cls) -> np.ndarray:
        return cls.__c

    @classmethod
    def is_embedded_method (cls) -> bool:
        return True

class DormandPrince_5_4(RungeKutta_Explicit):
    """
    Dormand-Prince 5(4) method, the usual default for non-stiff problems.  The fifth-order result is the one
    that is propagated.  Note that the first-same-as-last property is not exploited; each step evaluates all
    seven stages.

    Reference:
    -   https://en.wikipedia.org/wiki/Dormand%E2%80%93Prince_method
    """

    __a = np.array([
        [       0.0 ,         0.0 ,        0.0 ,      0.0 ,         0.0 ,    0.0, 0.0],
        [       1/5 ,         0.0 ,        0.0 ,      0.0 ,         0.0 ,    0.0, 0.0],
        [      3/40 ,        9/40 ,        0.0 ,      0.0 ,         0.0 ,    0.0, 0.0],
        [     44/45 ,      -56/15 ,       32/9 ,      0.0 ,         0.0 ,    0.0, 0.0],
        [19372/6561 , -25360/2187 , 64448/6561 , -212/729 ,         0.0 ,    0.0, 0.0],
        [ 9017/3168 ,     -355/33 , 46732/5247 ,   49/176 , -5103/18656 ,    0.0, 0.0],
        [    35/384 ,         0.0 ,   500/1113 ,  125/192 ,  -2187/6784 ,  11/84, 0.0],
    ])
    __b = np.array([35/384, 0.0, 500/1113, 125/192, -2187/6784, 11/84, 0.0])
    __b_star = np.array([5179/57600, 0.0, 7571/16695, 393/640, -92097/339200, 187/2100, 1/40])
    __c = np.array([0.0, 1/5, 3/10, 4/5, 8/9, 1.0, 1.0])

    @classmethod
    def order (cls) -> int:
        return 5

    @classmethod
    def embedded_order (cls) -> int:
        return 4

    @classmethod
    def a (cls) -> np.ndarray:
        return cls.__a

    @classmethod
    def b (cls) -> np.ndarray:
        return cls.__b

    @classmethod
    def b_star (cls) -> np.ndarray:
        return cls.__b_star

    @classmethod
    def c (cls) -> np.ndarray:
        return cls.__c

    @classmethod
    def is_embedded_method (cls) -> bool:
        return True
