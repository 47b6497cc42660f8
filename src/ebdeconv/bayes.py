"""Empirical Bayes posteriors under the fitted g

g(theta | x) = g(theta) p(x | theta) / f(x)

"""
import numpy as np

import ebdeconv.kernels

def _normalize(w):
  total = w.sum(axis=0)
  if (total <= 0).any():
    raise ValueError('marginal probability of the observation is zero under the fitted g')
  return w / total

def posterior(fit, x, n=None):
  """Return posterior distribution [m,] over the grid given one observation

  fit - DeconvResult
  x - observed value (successes for binomial)
  n - number of trials (binomial only)

  """
  p = ebdeconv.kernels.density(fit.family, x, fit.tau, n=n, ignore_zero=fit.ignore_zero)
  return _normalize(fit.g * p)

def posterior_matrix(fit):
  """Return matrix [m, K] whose column k is the posterior given support[k]"""
  return _normalize(fit.g.reshape(-1, 1) * fit.P.T)

def posterior_mean(fit, x, n=None):
  """Return E[theta | x] for each observation

  x - scalar or array-like [N,]
  n - scalar or array-like [N,] (binomial only)

  """
  x = np.asarray(x)
  if x.ndim == 0:
    return fit.tau.dot(posterior(fit, x.item(), n))
  if n is None:
    n = [None] * x.shape[0]
  else:
    n = np.broadcast_to(n, x.shape)
  return np.array([fit.tau.dot(posterior(fit, xi, ni)) for xi, ni in zip(x, n)])

def marginal(fit):
  """Return fitted marginal distribution f [K,] over the support"""
  return fit.P.dot(fit.g)
