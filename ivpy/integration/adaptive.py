"""
Adaptive step-size control, which varies the integration timestep in order to keep the local truncation
error estimate of an embedded Runge-Kutta method under a tolerance.

Design notes
-   Each attempted step of size dt produces an error estimate err.  If err <= tolerance, the step is accepted
    and the next step is proposed to be

        dt * min(growth_cap, safety_factor * (tolerance/err)**(1/order))

    Otherwise the step is rejected (time and state do not advance) and retried with

        dt * max(shrink_cap, safety_factor * (tolerance/err)**(1/order))

    where order is the order of the propagated (higher-order) result of the method.
-   If a rejected step would shrink below min_dt, the controller gives up and raises StepSizeUnderflow;
    this is what bounds the number of rejections, rather than an iteration limit.
-   A step that would pass the stopping time is clipped to land on it exactly.  Since the clipped step
    is artificially small, it doesn't get to shrink the proposal for the step after it.
"""

import collections
import numpy as np
import typing
from ..exceptions import IntegrationDiverged, InvalidStep, StepSizeUnderflow
from .step import StepResult, is_finite

class AdaptiveConfig:
    """
    The options for the adaptive step-size controller.  These are only meaningful for adaptive (embedded)
    methods.

    -   tolerance is the largest acceptable local truncation error estimate.
    -   min_dt is the smallest step size the controller may shrink to before giving up.
    -   max_dt, if not None, caps the step size.
    -   growth_cap and shrink_cap bound the factor by which the step size can change after an accepted
        and a rejected step respectively.
    -   safety_factor scales the optimal step size predicted from the error estimate, so that the next
        step is more likely to be accepted.
    """

    def __init__ (
        self,
        *,
        tolerance:float=1.0e-6,
        min_dt:float=1.0e-12,
        max_dt:typing.Optional[float]=None,
        growth_cap:float=5.0,
        shrink_cap:float=0.2,
        safety_factor:float=0.9,
    ) -> None:
        if not (np.isfinite(tolerance) and tolerance > 0.0):
            raise InvalidStep(f'tolerance must be positive and finite (but was {tolerance})')
        if not (np.isfinite(min_dt) and min_dt > 0.0):
            raise InvalidStep(f'min_dt must be positive and finite (but was {min_dt})')
        if max_dt is not None and not (max_dt >= min_dt):
            raise InvalidStep(f'max_dt (which is {max_dt}) must be at least min_dt (which is {min_dt})')
        if not (np.isfinite(growth_cap) and growth_cap > 1.0):
            raise InvalidStep(f'growth_cap must be finite and greater than 1 (but was {growth_cap})')
        if not (0.0 < shrink_cap < 1.0):
            raise InvalidStep(f'shrink_cap must be in the open interval (0,1) (but was {shrink_cap})')
        if not (0.0 < safety_factor <= 1.0):
            raise InvalidStep(f'safety_factor must be in the interval (0,1] (but was {safety_factor})')

        self.tolerance      = float(tolerance)
        self.min_dt         = float(min_dt)
        self.max_dt         = np.inf if max_dt is None else float(max_dt)
        self.growth_cap     = float(growth_cap)
        self.shrink_cap     = float(shrink_cap)
        self.safety_factor  = float(safety_factor)

    def __repr__ (self) -> str:
        return f'AdaptiveConfig(tolerance={self.tolerance}, min_dt={self.min_dt}, max_dt={self.max_dt}, growth_cap={self.growth_cap}, shrink_cap={self.shrink_cap}, safety_factor={self.safety_factor})'

# result is the StepResult of the accepted step, t_step is the step size it used, and rejection_count is the
# number of attempts that were rejected before it.
AcceptedStep = collections.namedtuple('AcceptedStep', ['result', 't_step', 'rejection_count'])

def _log_nothing (message:str) -> None:
    pass

class StepSizeController:
    """
    Holds the mutable step-size state of one adaptive integration.  A new instance should be made for each
    integration call; instances must not be shared between concurrent integrations.
    """

    def __init__ (self, *, stepper, config:AdaptiveConfig, initial_dt:float, log_message:typing.Callable[[str],None]=_log_nothing) -> None:
        if not stepper.is_adaptive():
            raise InvalidStep(f'{type(stepper).__name__} does not estimate its local truncation error, so it can not be used with StepSizeController')
        if not (np.isfinite(initial_dt) and initial_dt > 0.0):
            raise InvalidStep(f'initial_dt must be positive and finite (but was {initial_dt})')

        self.__stepper      = stepper
        self.__log_message  = log_message
        self.__exponent     = 1.0 / stepper.order()

        self.tolerance      = config.tolerance
        self.min_dt         = config.min_dt
        self.max_dt         = config.max_dt
        self.growth_cap     = config.growth_cap
        self.shrink_cap     = config.shrink_cap
        self.safety_factor  = config.safety_factor
        self.current_dt     = min(float(initial_dt), self.max_dt)

    def __step_size_factor (self, error_estimate:float) -> float:
        """Returns safety_factor*(tolerance/error_estimate)**(1/order), which is infinite when error_estimate is zero."""
        if error_estimate == 0.0:
            return np.inf
        return self.safety_factor * (self.tolerance / error_estimate)**self.__exponent

    def advance (self, rhs, y, t:float, t_stop:float) -> AcceptedStep:
        """
        Attempts steps from (t,y) until one is accepted, shrinking the step size after each rejection, and
        returns the accepted step.  The step will not pass t_stop; if it is clipped to reach t_stop, then
        the next_time of the returned result is exactly t_stop.

        Raises IntegrationDiverged if an attempted step produces a non-finite state or error estimate, and
        StepSizeUnderflow if the step size would have to shrink below min_dt.
        """
        if not (t < t_stop):
            raise InvalidStep(f'expected t < t_stop, but (t, t_stop) was {(t, t_stop)}')

        rejection_count = 0
        while True:
            t_step = min(self.current_dt, self.max_dt)
            # Handle the case where t_stop is reached (or surpassed)
            is_clipped = t + t_step >= t_stop
            if is_clipped:
                t_step = t_stop - t

            if t + t_step == t:
                raise StepSizeUnderflow(
                    f't_step became too small to advance time (t = {t:e}, t_step = {t_step:e})',
                    t=t,
                    y=y,
                    t_step=t_step,
                )

            result = self.__stepper.step_with_error(rhs, y, t, t_step)
            error_estimate = result.error_estimate
            if not is_finite(result.next_state) or not np.isfinite(error_estimate):
                raise IntegrationDiverged(
                    f'step from t = {t} with t_step = {t_step} produced a non-finite state or error estimate',
                    t=t,
                    y=y,
                )

            factor = self.__step_size_factor(error_estimate)
            if error_estimate <= self.tolerance:
                proposed_dt = t_step * min(self.growth_cap, factor)
                if is_clipped:
                    self.current_dt = max(self.current_dt, proposed_dt)
                    result = StepResult(result.next_state, t_stop, error_estimate)
                else:
                    self.current_dt = proposed_dt
                self.__log_message(f'accepted t_step = {t_step:e} at t = {t} with error estimate {error_estimate:e} after {rejection_count} rejection(s); next t_step = {self.current_dt:e}')
                return AcceptedStep(result, t_step, rejection_count)

            rejection_count += 1
            shrunken_dt = t_step * max(self.shrink_cap, factor)
            self.__log_message(f'rejected t_step = {t_step:e} at t = {t} with error estimate {error_estimate:e}; retrying with t_step = {shrunken_dt:e}')
            if shrunken_dt < self.min_dt:
                raise StepSizeUnderflow(
                    f'could not satisfy tolerance {self.tolerance:e} at t = {t} with a step size of at least min_dt = {self.min_dt:e} (last attempted t_step = {t_step:e}, error estimate = {error_estimate:e})',
                    t=t,
                    y=y,
                    t_step=t_step,
                )
            self.current_dt = shrunken_dt
