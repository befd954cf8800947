import ivpy
import ivpy.integration.rungekutta as rk
import numpy as np
import pytest

ALL_METHODS = [rk.Euler, rk.Midpoint, rk.RungeKutta_4, rk.BogackiShampine_3_2, rk.RungeKuttaFehlberg_4_5, rk.DormandPrince_5_4]
EMBEDDED_METHODS = [rk.BogackiShampine_3_2, rk.RungeKuttaFehlberg_4_5, rk.DormandPrince_5_4]

def exponential_decay (y, t):
    return -y

def rotation (y, t):
    """Vector field of rigid counterclockwise rotation."""
    return np.array([-y[1], y[0]])

def integrate_fixed_steps (method, rhs, y, t, dt, step_count):
    for _ in range(step_count):
        y, t, error_estimate = method.step(rhs, y, t, dt)
        assert error_estimate is None
    return y

@pytest.mark.parametrize('method_class', ALL_METHODS)
def test__method_definitions_are_valid (method_class):
    method_class.validate_method_definition()
    method = method_class()
    assert method.is_explicit_method()
    assert method.is_adaptive() == method_class.is_embedded_method()
    assert method.stage_count() >= method.order()

def test__embedded_orders ():
    assert rk.BogackiShampine_3_2.order() == 3 and rk.BogackiShampine_3_2.embedded_order() == 2
    assert rk.RungeKuttaFehlberg_4_5.order() == 5 and rk.RungeKuttaFehlberg_4_5.embedded_order() == 4
    assert rk.DormandPrince_5_4.order() == 5 and rk.DormandPrince_5_4.embedded_order() == 4

def test__invalid_method_definition ():
    class NotLowerTriangular(rk.RungeKutta_Explicit):
        @classmethod
        def order (cls):
            return 1
        @classmethod
        def a (cls):
            return np.array([[0.0, 1.0], [0.0, 0.0]])
        @classmethod
        def b (cls):
            return np.array([0.5, 0.5])
        @classmethod
        def c (cls):
            return np.array([0.0, 0.0])
        @classmethod
        def is_embedded_method (cls):
            return False

    with pytest.raises(ValueError):
        NotLowerTriangular()

def test__step_time_is_exact ():
    result = rk.RungeKutta_4().step(exponential_decay, np.array([1.0]), 0.3, 0.1)
    assert result.next_time == 0.3 + 0.1

def test__euler_is_geometric ():
    dt = 0.01
    y = np.array([1.0])
    for n in range(1, 101):
        y = rk.Euler().step(exponential_decay, y, (n-1)*dt, dt).next_state
        assert np.allclose(y, (1.0-dt)**n, rtol=1.0e-12, atol=0.0)

def test__scalar_state ():
    # The state only needs to support addition and scalar multiplication.
    result = rk.RungeKutta_4().step(exponential_decay, 1.0, 0.0, 0.1)
    assert np.isclose(result.next_state, np.exp(-0.1), rtol=1.0e-6)

def test__tensor_state ():
    y_0 = np.arange(6, dtype=float).reshape(2,3)
    result = rk.DormandPrince_5_4().step_with_error(exponential_decay, y_0, 0.0, 0.1)
    assert result.next_state.shape == (2,3)
    assert np.allclose(result.next_state, y_0*np.exp(-0.1), rtol=1.0e-8)

@pytest.mark.parametrize('method_class,min_ratio,max_ratio', [
    (rk.Euler, 1.8, 2.2),
    (rk.Midpoint, 3.5, 4.5),
    (rk.RungeKutta_4, 12.0, 20.0),
])
def test__convergence_order (method_class, min_ratio, max_ratio):
    """Halving the step size should divide the global error at t=1 by about 2**order."""
    method = method_class()
    error_v = []
    for dt in [0.02, 0.01]:
        y = integrate_fixed_steps(method, exponential_decay, np.array([1.0]), 0.0, dt, int(round(1.0/dt)))
        error_v.append(np.abs(y[0] - np.exp(-1.0)))
    ratio = error_v[0] / error_v[1]
    print(f'{method_class.__name__} error ratio = {ratio}')
    assert min_ratio < ratio < max_ratio

def test__runge_kutta_4_accuracy ():
    y = integrate_fixed_steps(rk.RungeKutta_4(), exponential_decay, np.array([1.0]), 0.0, 0.01, 100)
    assert np.abs(y[0] - np.exp(-1.0)) < 1.0e-9

def test__runge_kutta_4_rotation ():
    dt = 2*np.pi/1000
    y = integrate_fixed_steps(rk.RungeKutta_4(), rotation, np.array([1.0, 0.0]), 0.0, dt, 1000)
    assert np.allclose(y, [1.0, 0.0], atol=1.0e-9)

@pytest.mark.parametrize('method_class', [rk.RungeKuttaFehlberg_4_5, rk.DormandPrince_5_4])
def test__higher_order_result_is_propagated (method_class):
    result = method_class().step_with_error(exponential_decay, np.array([1.0]), 0.0, 0.1)
    actual_error = np.abs(result.next_state[0] - np.exp(-0.1))
    # The error estimate is (about) the error of the lower-order result, so the propagated result should beat it.
    assert 0.0 < result.error_estimate
    assert actual_error < result.error_estimate

@pytest.mark.parametrize('method_class,min_ratio,max_ratio', [
    (rk.BogackiShampine_3_2, 6.5, 9.5),
    (rk.RungeKuttaFehlberg_4_5, 24.0, 40.0),
    (rk.DormandPrince_5_4, 24.0, 40.0),
])
def test__error_estimate_scaling (method_class, min_ratio, max_ratio):
    """The local truncation error estimate should scale as dt**(embedded_order+1)."""
    method = method_class()
    error_estimate_v = [method.step_with_error(exponential_decay, np.array([1.0]), 0.0, dt).error_estimate for dt in [0.1, 0.05]]
    ratio = error_estimate_v[0] / error_estimate_v[1]
    print(f'{method_class.__name__} error estimate ratio = {ratio}')
    assert min_ratio < ratio < max_ratio

def test__selectable_norm ():
    y_0 = np.array([1.0, 2.0, -3.0])
    euclidean_estimate = rk.DormandPrince_5_4().step_with_error(exponential_decay, y_0, 0.0, 0.1).error_estimate
    max_abs_estimate = rk.DormandPrince_5_4(norm=ivpy.norm.max_abs).step_with_error(exponential_decay, y_0, 0.0, 0.1).error_estimate
    assert 0.0 < max_abs_estimate < euclidean_estimate

def test__non_embedded_method_has_no_error_estimate ():
    with pytest.raises(TypeError):
        rk.RungeKutta_4().step_with_error(exponential_decay, np.array([1.0]), 0.0, 0.1)

@pytest.mark.parametrize('method_class', ALL_METHODS)
@pytest.mark.parametrize('dt', [0.0, np.nan, np.inf])
def test__invalid_step_size (method_class, dt):
    call_count = 0
    def counting_rhs (y, t):
        nonlocal call_count
        call_count += 1
        return -y

    with pytest.raises(ivpy.InvalidStep):
        method_class().step(counting_rhs, np.array([1.0]), 0.0, dt)
    assert call_count == 0

def test__negative_step_integrates_backward ():
    y = integrate_fixed_steps(rk.RungeKutta_4(), exponential_decay, np.array([np.exp(-1.0)]), 1.0, -0.01, 100)
    assert np.abs(y[0] - 1.0) < 1.0e-9

def test__stage_evaluation_count ():
    for method_class in ALL_METHODS:
        call_count = 0
        def counting_rhs (y, t):
            nonlocal call_count
            call_count += 1
            return -y
        method_class().step(counting_rhs, np.array([1.0]), 0.0, 0.1)
        assert call_count == method_class.stage_count()
