"""Accuracy of the penalized maximum likelihood estimate of g

Following Efron (2016), the penalized estimate a has approximate bias and
covariance

bias(a) = -(I + s'')^-1 s'
cov(a) = (I + s'')^-1 I (I + s'')^-1

where I is the Fisher information, and s', s'' are the gradient and Hessian
of the penalty. These are propagated through g = softmax(Q a) by the delta
method. The bias of g additionally includes the second order term
0.5 tr(d^2 g_j / d eta^2 cov(eta)).

"""
import collections
import warnings

import numpy as np

import ebdeconv.objective
from .exceptions import SingularCurvatureWarning

Statistics = collections.namedtuple(
  'Statistics', ['cov', 'cov_g', 'se_g', 'bias', 'bias_g', 'G', 'se_G', 'S'])

def _inv_pd(H, rtol=1e-12):
  """Return H^-1 for symmetric positive definite H, or None if H is numerically
  singular"""
  if not np.isfinite(H).all():
    return None
  w, v = np.linalg.eigh(H)
  if not np.isfinite(w).all() or w.max() <= 0 or w.min() <= rtol * w.max():
    return None
  return (v / w).dot(v.T)

def softmax_jacobian(g, Q):
  """Return dg / da [m, p]"""
  return (np.diag(g) - np.outer(g, g)).dot(Q)

def softmax_second_order(g, cov_eta):
  """Return 0.5 tr(d^2 g_j / d eta^2 cov_eta) for each j

  d^2 g_j / d eta_k d eta_l = g_j [(e_j - g)_k (e_j - g)_l - g_k (delta_kl - g_l)]

  """
  v = cov_eta.dot(g)
  q = g.dot(v)
  d = np.diag(cov_eta)
  return 0.5 * g * (d - 2 * v + 2 * q - g.dot(d))

def statistics(a, Q, P, y, c0=1, penalty='ridge', mask=None, full_support=True,
               information='expected'):
  """Return Statistics of the fitted g

  a - MLE [p,]
  Q - design matrix [m, p]
  P - kernel matrix [K, m]
  y - counts [K,]
  information - 'expected' or 'observed' Fisher information

  """
  g = ebdeconv.objective.mixing(Q, a)
  m, p = Q.shape
  _, sdot, sddot = ebdeconv.objective.penalty_terms(a, c0, penalty, mask)
  I = ebdeconv.objective.information(a, Q, P, y, full_support=full_support, kind=information)
  H_inv = _inv_pd(I + sddot)
  if H_inv is None and information == 'observed':
    warnings.warn('observed curvature is not positive definite; using expected information',
                  SingularCurvatureWarning)
    I = ebdeconv.objective.information(a, Q, P, y, full_support=full_support, kind='expected')
    H_inv = _inv_pd(I + sddot)
  R = np.trace(sddot) / np.trace(I)
  if H_inv is None:
    warnings.warn('curvature at the optimum is singular; standard errors and bias are undefined',
                  SingularCurvatureWarning)
    return Statistics(
      cov=np.full((p, p), np.nan),
      cov_g=np.full((m, m), np.nan),
      se_g=np.full(m, np.nan),
      bias=np.full(p, np.nan),
      bias_g=np.full(m, np.nan),
      G=np.cumsum(g),
      se_G=np.full(m, np.nan),
      S=R)
  bias = -H_inv.dot(sdot)
  cov = H_inv.dot(I).dot(H_inv)
  Dq = softmax_jacobian(g, Q)
  cov_g = Dq.dot(cov).dot(Dq.T)
  bias_g = Dq.dot(bias) + softmax_second_order(g, Q.dot(cov).dot(Q.T))
  # Important: round-off can make tiny variances negative
  se_g = np.sqrt(np.clip(np.diag(cov_g), 0, None))
  L = np.tril(np.ones((m, m)))
  se_G = np.sqrt(np.clip(np.diag(L.dot(cov_g).dot(L.T)), 0, None))
  return Statistics(cov=cov, cov_g=cov_g, se_g=se_g, bias=bias, bias_g=bias_g,
                    G=np.cumsum(g), se_G=se_G, S=R)
