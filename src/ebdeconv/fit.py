"""Empirical Bayes deconvolution by penalized maximum likelihood

x_i ~ p(. | theta_i)
theta_i ~ g(.)

where p is Poisson, Normal (with unit variance), or Binomial, and g is a
discrete distribution on a fixed grid tau, modeled as

g(tau) = softmax(Q a)

for a smooth design matrix Q. We estimate a by maximizing the penalized
marginal likelihood, and report g with its standard error and bias.

"""
import collections

import numpy as np
import pandas as pd

import ebdeconv.basis
import ebdeconv.data
import ebdeconv.kernels
import ebdeconv.objective
import ebdeconv.optim
import ebdeconv.stats

DeconvResult = collections.namedtuple(
  'DeconvResult', ['tau', 'mle', 'g', 'cov', 'cov_g', 'se_g', 'bias_g', 'S',
                   'loglik', 'objective', 'converged', 'n_iters', 'stats',
                   'Q', 'P', 'support', 'counts', 'family', 'ignore_zero'])

def _init(init, Q, penalty):
  p = Q.shape[1]
  if init is None:
    if penalty == 'norm':
      # The norm penalty is not differentiable at zero
      return np.ones(p)
    # Uniform g
    return np.zeros(p)
  init = np.asarray(init, dtype=float)
  if init.shape != (p,):
    raise ValueError(f'shape mismatch (init): expected {(p,)}, got {init.shape}')
  elif not np.isfinite(init).all():
    raise ValueError(f'invalid value(s) in init')
  return init

def deconv(tau, x=None, trials=None, counts=None, support=None, family='poisson',
           c0=1, df=5, atom=None, ignore_zero=False, scale=True, n=None, bins=40,
           basis='ns', penalty='ridge', information='expected', method='newton',
           init=None, max_iters=100, tol=1e-8, verbose=False):
  """Return DeconvResult

  Specify either raw observations x (with trials for binomial), or counts over
  support (see ebdeconv.data.tabulate).

  tau - grid of parameter values, array-like [m,]
  family - 'poisson', 'normal', or 'binomial'
  c0 - penalty weight
  df - number of smooth basis functions
  atom - grid value where g can have an extra point mass
  ignore_zero - use the zero-truncated Poisson likelihood
  scale - standardize columns of the basis
  n - largest poisson count in the sample space
  bins - number of histogram bins for normal observations
  basis - 'ns' or 'poly'
  penalty - 'ridge' (c0 ||a||^2) or 'norm' (c0 ||a||)
  information - 'expected' or 'observed' Fisher information
  method - 'newton', or a method of scipy.optimize.minimize
  init - initial value of a (default: uniform g)
  max_iters - maximum number of optimizer iterations
  tol - convergence threshold on the gradient

  """
  family = ebdeconv.kernels.check_family(family)
  ebdeconv.objective.check_penalty(penalty)
  if information not in ('expected', 'observed'):
    raise ValueError(f"information must be 'expected' or 'observed', got {information!r}")
  if c0 < 0:
    raise ValueError(f'c0 must be >= 0, got {c0}')
  tau = ebdeconv.basis.check_grid(tau, df)
  ebdeconv.kernels.check_tau(family, tau, ignore_zero)
  Q = ebdeconv.basis.design_matrix(tau, df=df, basis=basis, atom=atom, scale=scale)
  data = ebdeconv.data.tabulate(family, x=x, trials=trials, counts=counts,
                                support=support, n=n, ignore_zero=ignore_zero,
                                bins=bins)
  P = ebdeconv.kernels.kernel(family, tau, data.support, ignore_zero=ignore_zero,
                             width=data.width)
  y = data.counts
  mask = np.ones(Q.shape[1], dtype=bool)
  if atom is not None:
    mask[-1] = False
  args = (Q, P, y, c0, penalty, mask)
  init = _init(init, Q, penalty)
  if verbose:
    print(f'deconv: {family} m={tau.shape[0]} p={Q.shape[1]} K={P.shape[0]} N={y.sum():.0f}')
  if method == 'newton':
    mle, obj, converged, n_iters = ebdeconv.optim.newton(
      init,
      fun=lambda a: ebdeconv.objective.objective(a, *args),
      jac=lambda a: ebdeconv.objective.gradient(a, *args),
      hess=lambda a: ebdeconv.objective.hessian(a, *args),
      max_iters=max_iters, tol=tol, verbose=verbose)
  else:
    mle, obj, converged, n_iters = ebdeconv.optim.minimize(
      init,
      fun=lambda a: ebdeconv.objective.objective(a, *args),
      jac=lambda a: ebdeconv.objective.gradient(a, *args),
      hess=lambda a: ebdeconv.objective.hessian(a, *args),
      method=method, max_iters=max_iters, tol=tol, verbose=verbose)
  g = ebdeconv.objective.mixing(Q, mle)
  res = ebdeconv.stats.statistics(mle, Q, P, y, c0=c0, penalty=penalty, mask=mask,
                                  full_support=data.full_support,
                                  information=information)
  stats = pd.DataFrame({
    'theta': tau,
    'g': g,
    'SE.g': res.se_g,
    'G': res.G,
    'SE.G': res.se_G,
    'Bias.g': res.bias_g,
  })
  return DeconvResult(
    tau=tau, mle=mle, g=g, cov=res.cov, cov_g=res.cov_g, se_g=res.se_g,
    bias_g=res.bias_g, S=res.S, loglik=ebdeconv.objective.loglik(mle, Q, P, y),
    objective=obj, converged=converged, n_iters=n_iters, stats=stats, Q=Q, P=P,
    support=data.support, counts=y, family=family, ignore_zero=ignore_zero)
