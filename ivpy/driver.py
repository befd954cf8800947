"""
The top-level entry point, odeint, which numerically integrates an initial value problem

    dy/dt = rhs(y, t)
    y(t0) = y0

using a given step algorithm, producing the trajectory sampled at the times described by a time specification.
"""

import numpy as np
import typing
import warnings
from .exceptions import IntegrationError, IntegrationDiverged, InvalidStep
from .integration.adaptive import AdaptiveConfig, StepSizeController
from .integration.step import is_finite
from .timespec import TimeSpec

class Trajectory:
    """
    The result of odeint.  A Trajectory unpacks as a pair, so that

        t_v, y_t = odeint(...)

    works as expected.
    """

    def __init__ (
        self,
        *,
        t_v:np.ndarray,
        y_t:np.ndarray,
        t_step_v:np.ndarray,
        error_estimate_v:np.ndarray,
        rejection_count_v:np.ndarray,
    ) -> None:
        if len(t_v) != len(y_t):
            raise ValueError(f'expected len(t_v) == len(y_t), but got {len(t_v)} and {len(y_t)}')
        if not (len(t_step_v) == len(error_estimate_v) == len(rejection_count_v) == len(t_v)-1):
            raise ValueError('expected t_step_v, error_estimate_v, and rejection_count_v to each have length len(t_v)-1')

        # Sequence of time values, indexed as t_v[i].  This is strictly increasing.
        self.t_v                = t_v
        # Sequence (tensor) of state values, indexed as y_t[i,K], where i is the time index and K is the
        # [multi]index for the state type (could be scalar, vector, or tensor).
        self.y_t                = y_t
        # Sequence of timestep values, where t_step_v[i] is the size of the step that produced sample i+1.
        # For an adaptive integration reported at explicit time points, this is the size of the last internal
        # step taken to reach the sample.  Note that len(t_step_v) == len(t_v) - 1.
        self.t_step_v           = t_step_v
        # Local truncation error estimate of the step that produced sample i+1, or NaN for methods that don't
        # estimate their error.
        self.error_estimate_v   = error_estimate_v
        # Number of rejected attempts before the step(s) that produced sample i+1 were accepted.  Always zero
        # for non-adaptive methods.
        self.rejection_count_v  = rejection_count_v

    @property
    def times (self) -> np.ndarray:
        return self.t_v

    @property
    def states (self) -> np.ndarray:
        return self.y_t

    def __len__ (self) -> int:
        return len(self.t_v)

    def __iter__ (self):
        yield self.t_v
        yield self.y_t

    def __repr__ (self) -> str:
        return f'Trajectory(sample count = {len(self.t_v)}, t_initial = {self.t_v[0]}, t_final = {self.t_v[-1]})'

class _SampleAccumulator:
    """Accumulates the samples of a trajectory as it's computed, and can salvage them if integration fails."""

    def __init__ (self) -> None:
        self.t_v                = []
        self.y_tv               = []
        self.t_step_v           = []
        self.error_estimate_v   = []
        self.rejection_count_v  = []

    def add_sample (self, *, t:float, y, t_step_o:typing.Optional[float]=None, error_estimate_o:typing.Optional[float]=None, rejection_count:int=0) -> None:
        self.t_v.append(float(t))
        self.y_tv.append(np.copy(y))
        if len(self.t_v) > 1:
            if t_step_o is None:
                raise TypeError('t_step_o must be specified for every sample but the first')
            self.t_step_v.append(t_step_o)
            self.error_estimate_v.append(np.nan if error_estimate_o is None else error_estimate_o)
            self.rejection_count_v.append(rejection_count)

    def salvage_into (self, e:IntegrationError) -> None:
        e.salvaged_t_v = np.array(self.t_v, dtype=np.float64)
        e.salvaged_y_t = np.array(self.y_tv)

    def to_trajectory (self) -> Trajectory:
        return Trajectory(
            t_v=np.array(self.t_v, dtype=np.float64),
            y_t=np.array(self.y_tv),
            t_step_v=np.array(self.t_step_v, dtype=np.float64),
            error_estimate_v=np.array(self.error_estimate_v, dtype=np.float64),
            rejection_count_v=np.array(self.rejection_count_v, dtype=int),
        )

def _integrate_fixed (stepper, rhs, y_initial, tspec:TimeSpec, samples:_SampleAccumulator, log_message) -> None:
    t_v = tspec.time_points()
    y = y_initial
    samples.add_sample(t=t_v[0], y=y)
    # Exactly one step between each pair of successive time values.  Recording the time values themselves
    # (instead of accumulating the step results' next_time) means that the final time is exactly t_final.
    for t_now,t_next in zip(t_v[:-1], t_v[1:]):
        t_step = t_next - t_now
        result = stepper.step(rhs, y, t_now, t_step)
        if not is_finite(result.next_state):
            raise IntegrationDiverged(
                f'{stepper!r} produced a non-finite state stepping from t = {t_now} with t_step = {t_step}',
                t=t_now,
                y=y,
            )
        y = result.next_state
        samples.add_sample(t=t_next, y=y, t_step_o=t_step)
    log_message(f'{stepper!r} took {len(t_v)-1} steps from t = {t_v[0]} to t = {t_v[-1]}')

def _integrate_adaptive (stepper, rhs, y_initial, tspec:TimeSpec, config:AdaptiveConfig, samples:_SampleAccumulator, log_message) -> None:
    controller = StepSizeController(stepper=stepper, config=config, initial_dt=tspec.initial_step(), log_message=log_message)
    t = tspec.t_initial()
    y = y_initial
    samples.add_sample(t=t, y=y)

    if tspec.is_explicit():
        # Step adaptively within each interval, but only report at the requested time values.
        for t_target in tspec.time_points()[1:]:
            t_target = float(t_target)
            rejection_count = 0
            while t < t_target:
                accepted = controller.advance(rhs, y, t, t_target)
                t, y = accepted.result.next_time, accepted.result.next_state
                rejection_count += accepted.rejection_count
            samples.add_sample(t=t, y=y, t_step_o=accepted.t_step, error_estimate_o=accepted.result.error_estimate, rejection_count=rejection_count)
    else:
        # Report every accepted step.
        t_final = tspec.t_final()
        while t < t_final:
            accepted = controller.advance(rhs, y, t, t_final)
            t, y = accepted.result.next_time, accepted.result.next_state
            samples.add_sample(t=t, y=y, t_step_o=accepted.t_step, error_estimate_o=accepted.result.error_estimate, rejection_count=accepted.rejection_count)

    log_message(f'{stepper!r} took {len(samples.t_v)-1} reported steps from t = {samples.t_v[0]} to t = {samples.t_v[-1]} with {sum(samples.rejection_count_v)} rejection(s)')

def odeint (stepper, rhs, y0, tspec:TimeSpec, config:typing.Optional[AdaptiveConfig]=None, *, verbose:bool=False) -> Trajectory:
    """
    Numerically integrates an initial value problem for a system of ODEs

        dy/dt = rhs(y, t)
        y(t0) = y0

    Here t is a one-dimensional independent variable (time), y(t) is the state (a numpy.ndarray of any shape,
    or a scalar), and rhs(y, t) returns the derivative of the state, having the same shape as y.  rhs must not
    modify its arguments.

    Parameters:

    -   stepper is the step algorithm, e.g. ivpy.RungeKutta_4() or ivpy.DormandPrince_5_4() from
        ivpy.integration.rungekutta, or one of the symplectic steppers from
        ivpy.symplectic_integration.separable_hamiltonian (e.g. leapfrog), in which case rhs must be a
        SeparableHamiltonian and y0 must have shape (2,...).

    -   tspec is a TimeSpec (FixedHorizon, Span, or ExplicitPoints) giving t0, the integration horizon, and
        the step size.

    -   config is an optional AdaptiveConfig.  It's only meaningful for adaptive (embedded) methods, which use
        AdaptiveConfig() if it's None.  For other methods, a given config is ignored with a RuntimeWarning.

    -   verbose, if True, prints progress messages.

    Behavior:

    -   A non-adaptive method takes exactly one step between successive time values of tspec.time_points(),
        and the returned trajectory has exactly those time values.  For FixedHorizon, this is floor(duration/dt)
        steps of size dt, then one shorter final step if dt doesn't divide duration.
    -   An adaptive method varies its step size to keep its local truncation error estimate under the
        tolerance, starting with tspec.initial_step().  For FixedHorizon and Span, every accepted step is
        reported.  For ExplicitPoints, the method steps adaptively but only reports at the requested time
        values.
    -   The last reported time is always exactly the end of the horizon.

    Return value is a Trajectory, which unpacks as t_v, y_t.

    Raises InvalidStep (before any evaluation of rhs) for a malformed tspec or config, or incompatible
    stepper/rhs/y0; IntegrationDiverged if a step produces a non-finite state; and StepSizeUnderflow if an
    adaptive method can't satisfy the tolerance with a step of at least config.min_dt.  Each of these carries
    the samples computed before the failure in its salvaged_t_v and salvaged_y_t attributes.  Exceptions
    raised by rhs itself propagate unchanged.
    """

    if verbose:
        def log_message (message:str) -> None:
            print(message)
    else:
        def log_message (message:str) -> None:
            pass

    if not isinstance(tspec, TimeSpec):
        raise InvalidStep(f'expected tspec to be a TimeSpec (but it was {tspec!r})')
    stepper.check_compatibility(rhs, y0)
    if not is_finite(y0):
        raise InvalidStep('y0 must have only finite components')

    samples = _SampleAccumulator()
    try:
        if stepper.is_adaptive():
            if config is None:
                config = AdaptiveConfig()
            elif not isinstance(config, AdaptiveConfig):
                raise InvalidStep(f'expected config to be an AdaptiveConfig (but it was {config!r})')
            log_message(f'integrating adaptively with {stepper!r} over {tspec!r} using {config!r}')
            _integrate_adaptive(stepper, rhs, y0, tspec, config, samples, log_message)
        else:
            if config is not None:
                warnings.warn(f'{stepper!r} is not an adaptive method, so config is ignored', RuntimeWarning, stacklevel=2)
            log_message(f'integrating with {stepper!r} over {tspec!r}')
            _integrate_fixed(stepper, rhs, y0, tspec, samples, log_message)
    except IntegrationError as e:
        samples.salvage_into(e)
        log_message(f'integration failed after {len(samples.t_v)} sample(s): {e}')
        raise

    return samples.to_trajectory()
