"""
Time specifications, which describe the integration horizon and the step granularity.

There are three variants:

-   FixedHorizon(t0=..., duration=..., dt=...) integrates from t0 over the given duration using steps of size dt.
-   Span(t0=..., t1=..., dt=...) is the same thing, but with the horizon given by its endpoints.
-   ExplicitPoints(t_v) reports the solution at exactly the given, strictly increasing time values.

Each is validated on construction, raising InvalidStep if it is malformed, and is not meant to be
modified afterward.
"""

import abc
import numpy as np
import typing
from .exceptions import InvalidStep

# If duration/dt is within this many units of roundoff (relative to the quotient) of an integer, then it is
# taken to be that integer, so that roundoff in the division doesn't produce a degenerate final step.  Any
# larger remainder gets its own clipped final step.
QUOTIENT_ROUNDING_ULPS = 4

def _require_finite_float (name:str, value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidStep(f'{name} must be a real number (but was {value!r})') from e
    if not np.isfinite(value):
        raise InvalidStep(f'{name} must be finite (but was {value})')
    return value

class TimeSpec(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def t_initial (self) -> float:
        raise NotImplementedError('subclass must implement this in order to use it')

    @abc.abstractmethod
    def t_final (self) -> float:
        raise NotImplementedError('subclass must implement this in order to use it')

    @abc.abstractmethod
    def initial_step (self) -> float:
        """The step size the integration should start with (and keep, for non-adaptive methods)."""
        raise NotImplementedError('subclass must implement this in order to use it')

    @abc.abstractmethod
    def time_points (self) -> np.ndarray:
        """
        Returns the strictly increasing time values at which the solution is reported by a non-adaptive
        integrator.  The first element is t_initial() and the last is t_final(), both exactly.
        """
        raise NotImplementedError('subclass must implement this in order to use it')

    def is_explicit (self) -> bool:
        """Returns True if the reporting times were chosen by the caller instead of derived from a step size."""
        return False

    def duration (self) -> float:
        return self.t_final() - self.t_initial()

class FixedHorizon(TimeSpec):
    def __init__ (self, *, t0:float, duration:float, dt:float) -> None:
        t0          = _require_finite_float('t0', t0)
        duration    = _require_finite_float('duration', duration)
        dt          = _require_finite_float('dt', dt)

        if duration <= 0.0:
            raise InvalidStep(f'duration must be positive (but was {duration})')
        if dt <= 0.0:
            raise InvalidStep(f'dt must be positive (but was {dt})')
        if dt > duration:
            raise InvalidStep(f'dt (which is {dt}) must not exceed duration (which is {duration})')

        self.t0         = t0
        self.__duration = duration
        self.dt         = dt

    def t_initial (self) -> float:
        return self.t0

    def t_final (self) -> float:
        return self.t0 + self.__duration

    def duration (self) -> float:
        return self.__duration

    def initial_step (self) -> float:
        return self.dt

    def __step_quotient (self) -> typing.Tuple[int, bool]:
        """Returns (floor(duration/dt), whether duration/dt is an integer up to roundoff)."""
        quotient = self.__duration / self.dt
        nearest = round(quotient)
        if abs(quotient - nearest) <= QUOTIENT_ROUNDING_ULPS*np.finfo(np.float64).eps*max(1.0, quotient):
            return int(nearest), True
        return int(np.floor(quotient)), False

    def whole_step_count (self) -> int:
        return self.__step_quotient()[0]

    def has_clipped_final_step (self) -> bool:
        """Returns True if dt doesn't divide duration, so that a shorter final step is needed to land on t_final()."""
        return not self.__step_quotient()[1]

    def time_points (self) -> np.ndarray:
        n = self.whole_step_count()
        # Times are computed as t0 + i*dt rather than by repeated addition, so that roundoff doesn't accumulate.
        t_v = self.t0 + np.arange(n+1, dtype=np.float64)*self.dt
        if self.has_clipped_final_step():
            t_v = np.append(t_v, self.t_final())
        else:
            # Land exactly on the end of the horizon.
            t_v[-1] = self.t_final()
        return t_v

    def __repr__ (self) -> str:
        return f'FixedHorizon(t0={self.t0}, duration={self.__duration}, dt={self.dt})'

class Span(FixedHorizon):
    def __init__ (self, *, t0:float, t1:float, dt:float) -> None:
        t0 = _require_finite_float('t0', t0)
        t1 = _require_finite_float('t1', t1)
        if t1 <= t0:
            raise InvalidStep(f'expected t0 < t1, but (t0, t1) was {(t0, t1)}')
        super().__init__(t0=t0, duration=t1-t0, dt=dt)
        self.t1 = t1

    def t_final (self) -> float:
        # Use t1 itself rather than t0 + (t1-t0), which need not round back to t1.
        return self.t1

    def __repr__ (self) -> str:
        return f'Span(t0={self.t0}, t1={self.t1}, dt={self.dt})'

class ExplicitPoints(TimeSpec):
    def __init__ (self, t_v:typing.Sequence[float]) -> None:
        try:
            t_v = np.array(t_v, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidStep('t_v must be a sequence of real numbers') from e

        if len(t_v.shape) != 1:
            raise InvalidStep(f't_v must be one-dimensional (but t_v.shape was {t_v.shape})')
        if t_v.shape[0] < 2:
            raise InvalidStep(f't_v must have at least 2 elements (but had {t_v.shape[0]})')
        if not np.all(np.isfinite(t_v)):
            raise InvalidStep('t_v must have only finite elements')
        if not np.all(np.diff(t_v) > 0.0):
            raise InvalidStep('t_v must be strictly increasing')

        t_v.setflags(write=False)
        self.t_v = t_v

    def t_initial (self) -> float:
        return float(self.t_v[0])

    def t_final (self) -> float:
        return float(self.t_v[-1])

    def initial_step (self) -> float:
        return float(self.t_v[1] - self.t_v[0])

    def time_points (self) -> np.ndarray:
        return self.t_v

    def is_explicit (self) -> bool:
        return True

    def __repr__ (self) -> str:
        return f'ExplicitPoints({list(self.t_v)})'
