import numpy as np
import pytest
import scipy.optimize as so
import ebdeconv.optim

from ebdeconv.exceptions import ConvergenceWarning

def test_newton_quadratic():
  A = np.array([[3., 1], [1, 2]])
  b = np.array([1., -1])
  theta, obj, converged, n_iters = ebdeconv.optim.newton(
    np.zeros(2),
    fun=lambda x: 0.5 * x.dot(A).dot(x) - b.dot(x),
    jac=lambda x: A.dot(x) - b,
    hess=lambda x: A)
  assert converged
  assert n_iters <= 2
  assert np.isclose(theta, np.linalg.solve(A, b)).all()

def test_newton_rosenbrock():
  theta, obj, converged, n_iters = ebdeconv.optim.newton(
    np.array([-1.2, 1]), fun=so.rosen, jac=so.rosen_der, hess=so.rosen_hess,
    max_iters=200)
  assert converged
  assert np.isclose(theta, 1, atol=1e-4).all()

def test_newton_indefinite_hessian():
  # Starting at a saddle direction of the Hessian
  fun = lambda x: x[0] ** 4 - x[0] ** 2 + x[1] ** 2
  jac = lambda x: np.array([4 * x[0] ** 3 - 2 * x[0], 2 * x[1]])
  hess = lambda x: np.diag([12 * x[0] ** 2 - 2, 2])
  theta, obj, converged, n_iters = ebdeconv.optim.newton(np.array([0.1, 1]), fun, jac, hess)
  assert converged
  assert np.isclose(np.abs(theta[0]), np.sqrt(0.5), atol=1e-4)
  assert np.isclose(theta[1], 0, atol=1e-6)

def test_newton_max_iters():
  with pytest.warns(ConvergenceWarning):
    theta, obj, converged, n_iters = ebdeconv.optim.newton(
      np.array([-1.2, 1]), fun=so.rosen, jac=so.rosen_der, hess=so.rosen_hess,
      max_iters=1)
  assert not converged
  assert n_iters == 1
  assert obj < so.rosen(np.array([-1.2, 1]))

def test_newton_non_finite_init():
  with pytest.raises(RuntimeError):
    ebdeconv.optim.newton(np.zeros(1), fun=lambda x: np.inf, jac=None, hess=None)

def test_newton_verbose(capsys):
  ebdeconv.optim.newton(np.array([-1.2, 1]), fun=so.rosen, jac=so.rosen_der,
                        hess=so.rosen_hess, max_iters=200, verbose=True)
  captured = capsys.readouterr()
  assert 'newton [1]' in captured.out

def test_minimize_rosenbrock():
  theta, obj, converged, n_iters = ebdeconv.optim.minimize(
    np.array([-1.2, 1]), fun=so.rosen, jac=so.rosen_der, hess=so.rosen_hess,
    method='trust-exact', max_iters=200)
  assert converged
  assert np.isclose(theta, 1, atol=1e-4).all()

def test_minimize_bfgs():
  theta, obj, converged, n_iters = ebdeconv.optim.minimize(
    np.array([-1.2, 1]), fun=so.rosen, jac=so.rosen_der, hess=so.rosen_hess,
    method='BFGS', max_iters=500, tol=1e-6)
  assert converged
  assert np.isclose(theta, 1, atol=1e-3).all()

def test_minimize_max_iters():
  with pytest.warns(ConvergenceWarning):
    theta, obj, converged, n_iters = ebdeconv.optim.minimize(
      np.array([-1.2, 1]), fun=so.rosen, jac=so.rosen_der, hess=so.rosen_hess,
      method='BFGS', max_iters=1)
  assert not converged

def test_newton_max_iters_zero():
  with pytest.warns(ConvergenceWarning):
    theta, obj, converged, n_iters = ebdeconv.optim.newton(
      np.array([-1.2, 1]), fun=so.rosen, jac=so.rosen_der, hess=so.rosen_hess,
      max_iters=0)
  assert not converged
  assert n_iters == 0
  assert (theta == [-1.2, 1]).all()

def test_newton_max_iters_zero_at_optimum():
  theta, obj, converged, n_iters = ebdeconv.optim.newton(
    np.ones(2), fun=so.rosen, jac=so.rosen_der, hess=so.rosen_hess, max_iters=0)
  assert converged

def test_newton_line_search_failure():
  # The gradient points the wrong way, so no step decreases the objective
  with pytest.warns(ConvergenceWarning):
    theta, obj, converged, n_iters = ebdeconv.optim.newton(
      np.ones(2), fun=lambda x: x.dot(x), jac=lambda x: -2 * x,
      hess=lambda x: 2 * np.eye(2))
  assert not converged
  assert (theta == 1).all()
  assert obj == 2
