"""Penalized log likelihood of the deconvolution model

g = softmax(Q a)
f = P g
l(a) = sum_k y_k ln f_k

We minimize -l(a) + s(a), where s is a convex penalty weighted by c0. The
score and curvature are analytic:

d ln f_k / d eta_j = g_j (P_kj / f_k - 1) = W_jk

where eta = Q a, so that the score is Q' W y.

Reference:

  Efron, B. (2016). Empirical Bayes deconvolution estimates. Biometrika
  103(1): 1-20. doi:10.1093/biomet/asv068

"""
import numpy as np
import scipy.special as sp

def ridge(a, c0, mask):
  """Return c0 ||a||^2 and its derivatives"""
  b = a * mask
  return c0 * b.dot(b), 2 * c0 * b, 2 * c0 * np.diag(mask.astype(float))

def norm(a, c0, mask):
  """Return c0 ||a|| and its derivatives

  This is the penalty of Efron (2016). It is not differentiable at a = 0.

  """
  b = a * mask
  r = np.sqrt(b.dot(b))
  return (c0 * r, c0 * b / r,
          (c0 / r) * (np.diag(mask.astype(float)) - np.outer(b, b) / np.square(r)))

_penalties = {
  'ridge': ridge,
  'norm': norm,
}

def check_penalty(penalty):
  if penalty not in _penalties:
    raise ValueError(f'penalty must be one of {sorted(_penalties)}, got {penalty!r}')
  return _penalties[penalty]

def penalty_terms(a, c0=1, penalty='ridge', mask=None):
  """Return value, gradient, Hessian of the penalty

  mask - array-like [p,] of bool; only these coefficients are penalized

  """
  if mask is None:
    mask = np.ones(a.shape, dtype=bool)
  return check_penalty(penalty)(a, c0, mask)

def mixing(Q, a):
  """Return g = softmax(Q a)"""
  return sp.softmax(Q.dot(a))

def _terms(a, Q, P):
  g = mixing(Q, a)
  f = P.dot(g)
  # Important: cells with f = 0 have y = 0 at any finite optimum
  ratio = np.divide(P, f.reshape(-1, 1), out=np.zeros(P.shape), where=f.reshape(-1, 1) > 0)
  W = g.reshape(-1, 1) * (ratio.T - 1)
  return g, f, W

def loglik(a, Q, P, y):
  """Return log likelihood (up to constants not depending on a)"""
  f = P.dot(mixing(Q, a))
  return sp.xlogy(y, f).sum()

def objective(a, Q, P, y, c0=1, penalty='ridge', mask=None):
  """Return negative penalized log likelihood

  a - array-like [p,]
  Q - array-like [m, p]
  P - array-like [K, m]
  y - array-like [K,]

  """
  s, _, _ = penalty_terms(a, c0, penalty, mask)
  return -loglik(a, Q, P, y) + s

def gradient(a, Q, P, y, c0=1, penalty='ridge', mask=None):
  """Return gradient [p,] of the negative penalized log likelihood"""
  _, sdot, _ = penalty_terms(a, c0, penalty, mask)
  _, _, W = _terms(a, Q, P)
  return -Q.T.dot(W.dot(y)) + sdot

def _observed_information(g, W, Q, y):
  Wy = W.dot(y)
  H = (W * y).dot(W.T) + np.outer(Wy, g) + np.outer(g, Wy) - np.diag(Wy)
  return Q.T.dot(H).dot(Q)

def hessian(a, Q, P, y, c0=1, penalty='ridge', mask=None):
  """Return Hessian [p, p] of the negative penalized log likelihood"""
  _, _, sddot = penalty_terms(a, c0, penalty, mask)
  g, _, W = _terms(a, Q, P)
  return _observed_information(g, W, Q, y) + sddot

def information(a, Q, P, y, full_support=True, kind='expected'):
  """Return Fisher information [p, p] of the (unpenalized) log likelihood

  full_support - y is a histogram over the entire sample space, so expected
    counts are sum(y) f. Otherwise, rows of P are individual records and y are
    used as is
  kind - 'expected' or 'observed'

  """
  g, f, W = _terms(a, Q, P)
  if kind == 'observed':
    return _observed_information(g, W, Q, y)
  elif kind == 'expected':
    if full_support:
      yhat = y.sum() * f
    else:
      yhat = y
    qw = Q.T.dot(W)
    return (qw * yhat).dot(qw.T)
  else:
    raise ValueError(f"kind must be 'expected' or 'observed', got {kind!r}")
