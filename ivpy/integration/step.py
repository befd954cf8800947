import collections
import numpy as np
from ..exceptions import InvalidStep

# The result of a single integrator step.  error_estimate is None for methods that don't estimate
# their local truncation error.
StepResult = collections.namedtuple('StepResult', ['next_state', 'next_time', 'error_estimate'])

def validate_step_size (dt:float) -> None:
    """Raises InvalidStep if dt is zero or not finite.  Negative timesteps integrate backward and are allowed."""
    if not np.isfinite(dt):
        raise InvalidStep(f'step size must be finite (but was {dt})')
    if dt == 0.0:
        raise InvalidStep('step size must be nonzero')

def is_finite (y) -> bool:
    return bool(np.all(np.isfinite(np.asarray(y))))
