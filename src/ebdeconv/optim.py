"""Generic routines for minimizing smooth objectives"""

import warnings

import numpy as np
import scipy.linalg as sl
import scipy.optimize as so

from .exceptions import ConvergenceWarning

def _newton_direction(H, d, ridge=1e-8, max_updates=20):
  """Return the solution of (H + lambda I) x = -d

  lambda starts at zero and is increased until H + lambda I is positive
  definite.

  """
  lam = 0
  scale = max(np.abs(np.diag(H)).max(), 1)
  for i in range(max_updates):
    try:
      return sl.cho_solve(sl.cho_factor(H + lam * np.eye(H.shape[0])), -d)
    except np.linalg.LinAlgError:
      lam = ridge * scale if lam == 0 else 10 * lam
  # Fall back to steepest descent
  return -d / scale

def _backtrack(fun, theta, obj, direction, d, step=1, c=0.5, tau=0.5, max_iters=30):
  """Backtracking line search to select step size for the Newton-Raphson update

  Returns theta, obj unchanged if no acceptable step is found

  """
  slope = d.dot(direction)
  update = fun(theta + step * direction)
  while (not np.isfinite(update) or update > obj + c * step * slope) and max_iters > 0:
    step *= tau
    update = fun(theta + step * direction)
    max_iters -= 1
  if max_iters == 0:
    # Step size is small enough that update can be skipped
    return theta, obj
  else:
    return theta + step * direction, update

def newton(init, fun, jac, hess, max_iters=100, tol=1e-8, ftol=1e-12, verbose=False):
  """Return minimizer of fun by damped Newton-Raphson

  Returns theta, fun(theta), converged, number of iterations. If max_iters is
  reached, or the line search cannot decrease the objective away from a
  stationary point, warns and returns the last iterate.

  init - array-like [p,]
  fun - objective function
  jac - gradient of fun
  hess - Hessian of fun
  tol - threshold on max absolute gradient
  ftol - threshold on relative decrease in objective

  """
  theta = np.array(init, dtype=float)
  obj = fun(theta)
  if not np.isfinite(obj):
    raise RuntimeError('Non-finite objective at init')
  if verbose:
    print(f'newton [0]: {obj}')
  d = jac(theta)
  for i in range(max_iters):
    if np.abs(d).max() < tol:
      return theta, obj, True, i
    direction = _newton_direction(hess(theta), d)
    update_theta, update = _backtrack(fun, theta, obj, direction, d)
    if verbose:
      print(f'newton [{i + 1}]: {update}')
    if np.array_equal(update_theta, theta):
      if -d.dot(direction) < ftol * (abs(obj) + 1):
        # Predicted decrease is below round-off in the objective
        return theta, obj, True, i + 1
      warnings.warn(f'line search failed at iteration {i + 1} ({np.abs(d).max():.4g} > {tol:.4g})',
                    ConvergenceWarning)
      return theta, obj, False, i + 1
    diff = obj - update
    theta, obj = update_theta, update
    d = jac(theta)
    if diff < ftol * (abs(obj) + 1):
      return theta, obj, True, i + 1
  if np.abs(d).max() < tol:
    return theta, obj, True, max_iters
  warnings.warn(f'failed to converge in max_iters ({np.abs(d).max():.4g} > {tol:.4g})',
                ConvergenceWarning)
  return theta, obj, False, max_iters

# Methods of scipy.optimize.minimize which use the Hessian
_hess_methods = {'newton-cg', 'dogleg', 'trust-ncg', 'trust-krylov', 'trust-exact', 'trust-constr'}

def minimize(init, fun, jac, hess, method='trust-exact', max_iters=100, tol=1e-8, verbose=False):
  """Return minimizer of fun using scipy.optimize.minimize

  Returns the same tuple as newton.

  """
  kwargs = {}
  if method.lower() in _hess_methods:
    kwargs['hess'] = hess
  if verbose:
    kwargs['callback'] = lambda theta, *args: print(f'{method}: {fun(theta)}')
  res = so.minimize(fun, np.array(init, dtype=float), jac=jac, method=method,
                    options={'maxiter': max_iters, 'gtol': tol}, **kwargs)
  if not res.success:
    warnings.warn(f'failed to converge: {res.message}', ConvergenceWarning)
  return res.x, res.fun, bool(res.success), int(res.get('nit', 0))
