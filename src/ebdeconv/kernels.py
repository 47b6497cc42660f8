"""Likelihood kernels p(x | theta) for the supported families

Every family-specific computation lives here. Downstream code only sees the
kernel matrix P [K, m], P[k, j] = p(support[k] | tau[j]).

"""
import numpy as np
import scipy.stats as st

from .exceptions import DomainMismatch

FAMILIES = ('poisson', 'normal', 'binomial')

def check_family(family):
  family = str(family).lower()
  if family not in FAMILIES:
    raise ValueError(f'family must be one of {FAMILIES}, got {family!r}')
  return family

def check_tau(family, tau, ignore_zero=False):
  """Raise DomainMismatch if a grid value is not a valid parameter"""
  if family == 'poisson':
    bad = (tau <= 0) if ignore_zero else (tau < 0)
  elif family == 'binomial':
    bad = (tau < 0) | (tau > 1)
  else:
    bad = np.zeros(tau.shape, dtype=bool)
  if bad.any():
    idx = np.where(bad)[0][0]
    raise DomainMismatch(f'grid value at index {idx} ({tau[idx]}) outside the parameter space of {family}')

def _poisson(tau, x, ignore_zero):
  P = st.poisson(mu=tau.reshape(1, -1)).pmf(x.reshape(-1, 1))
  if ignore_zero:
    # Zero-truncated Poisson
    P /= -np.expm1(-tau.reshape(1, -1))
  return P

def _normal(tau, x, width):
  P = st.norm().pdf(x.reshape(-1, 1) - tau.reshape(1, -1))
  if width is not None:
    # Important: x are bin centers, so approximate the probability of the bin
    P *= width
  return P

def _binomial(tau, trials, x):
  return st.binom(n=trials.reshape(-1, 1), p=tau.reshape(1, -1)).pmf(x.reshape(-1, 1))

def kernel(family, tau, support, ignore_zero=False, width=None):
  """Return kernel matrix P [K, m]

  family - 'poisson', 'normal', or 'binomial'
  tau - array-like [m,]
  support - array-like [K,] of observed values, or [K, 2] of (trials,
    successes) for binomial
  ignore_zero - use the zero-truncated Poisson kernel
  width - bin width, if support are normal bin centers

  """
  family = check_family(family)
  tau = np.asarray(tau, dtype=float)
  check_tau(family, tau, ignore_zero)
  support = np.asarray(support)
  if family == 'poisson':
    return _poisson(tau, support.ravel(), ignore_zero)
  elif family == 'normal':
    return _normal(tau, support.astype(float).ravel(), width)
  else:
    if support.ndim != 2 or support.shape[1] != 2:
      raise ValueError(f'shape mismatch (support): expected (K, 2), got {support.shape}')
    return _binomial(tau, support[:,0], support[:,1])

def density(family, x, tau, n=None, ignore_zero=False):
  """Return p(x | tau) [m,] for a single observation x

  n - number of trials (binomial only)

  """
  family = check_family(family)
  if family == 'binomial':
    if n is None:
      raise ValueError('n must be specified for family binomial')
    if n < 1 or x < 0 or x > n or int(x) != x or int(n) != n:
      raise DomainMismatch(f'invalid binomial observation: {x} successes out of {n} trials')
    support = np.array([[n, x]])
  elif family == 'poisson':
    if x < 0 or int(x) != x or (ignore_zero and x == 0):
      raise DomainMismatch(f'invalid poisson observation: {x}')
    support = np.array([x])
  else:
    if not np.isfinite(x):
      raise DomainMismatch(f'invalid normal observation: {x}')
    support = np.array([x], dtype=float)
  return kernel(family, tau, support, ignore_zero=ignore_zero)[0]
