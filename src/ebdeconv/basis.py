"""Design matrices for the exponential family model of g

g(theta) = exp(Q(theta) a) / sum_theta' exp(Q(theta') a)

where the columns of Q are smooth functions of theta evaluated on the grid.

"""
import numpy as np
import scipy.interpolate as si
import scipy.linalg as sl

from .exceptions import InvalidAtom, InvalidGrid

def check_grid(tau, df):
  """Return tau as a float array, or raise InvalidGrid

  tau - array-like [m,]
  df - number of smooth basis functions

  """
  tau = np.asarray(tau, dtype=float)
  if tau.ndim != 1:
    raise InvalidGrid(f'expected 1d grid, got shape {tau.shape}')
  m = tau.shape[0]
  if m < 2:
    raise InvalidGrid(f'expected at least 2 grid points, got {m}')
  if not np.isfinite(tau).all():
    idx = np.where(~np.isfinite(tau))[0][0]
    raise InvalidGrid(f'non-finite grid value at index {idx}: {tau[idx]}')
  d = np.diff(tau)
  if (d <= 0).any():
    idx = np.where(d <= 0)[0][0] + 1
    raise InvalidGrid(f'grid not strictly increasing at index {idx}: {tau[idx - 1]} >= {tau[idx]}')
  if df < 1:
    raise InvalidGrid(f'df must be >= 1, got {df}')
  if df >= m:
    raise InvalidGrid(f'df ({df}) must be less than the number of grid points ({m})')
  return tau

def ns(x, df):
  """Return natural cubic spline basis [len(x), df] without intercept

  Follows R splines::ns: interior knots at quantiles of x, boundary knots at
  the range of x, and the B-spline basis projected onto the subspace with zero
  second derivative at both boundary knots.

  """
  x = np.asarray(x, dtype=float)
  num_knots = df - 1
  knots = np.quantile(x, np.linspace(0, 1, num_knots + 2)[1:-1])
  boundary = np.array([x.min(), x.max()])
  t = np.sort(np.hstack([np.repeat(boundary, 4), knots]))
  num_basis = t.shape[0] - 4
  # Important: identity coefficients evaluate every basis function at once
  spline = si.BSpline(t, np.eye(num_basis), 3)
  basis = spline(x)[:,1:]
  const = spline.derivative(2)(boundary)[:,1:]
  q, _ = sl.qr(const.T)
  return basis.dot(q[:,2:])

def poly(x, degree):
  """Return orthogonal polynomial basis [len(x), degree] without intercept

  Follows R poly: QR decomposition of the centered Vandermonde matrix.

  """
  x = np.asarray(x, dtype=float)
  z = np.vander(x - x.mean(), degree + 1, increasing=True)
  q, r = np.linalg.qr(z)
  q *= np.sign(np.diag(r))
  return q[:,1:]

def standardize(Q):
  """Center columns of Q and scale them to unit sum of squares"""
  Q = Q - Q.mean(axis=0)
  return Q / np.sqrt(np.square(Q).sum(axis=0))

_bases = {
  'ns': ns,
  'poly': poly,
}

def atom_index(tau, atom):
  """Return the index of atom in tau, or raise InvalidAtom"""
  idx = np.where(np.isclose(tau, atom))[0]
  if not idx.size:
    raise InvalidAtom(f'atom ({atom}) is not a grid point')
  return idx[0]

def design_matrix(tau, df=5, basis='ns', atom=None, scale=True):
  """Return design matrix Q [m, df] (or [m, df + 1] if atom is not None)

  tau - array-like [m,]
  df - number of smooth basis functions
  basis - 'ns' (natural spline) or 'poly' (orthogonal polynomial)
  atom - grid value where g is allowed an extra point mass
  scale - center and scale the smooth columns

  """
  tau = check_grid(tau, df)
  if basis not in _bases:
    raise ValueError(f'basis must be one of {sorted(_bases)}, got {basis!r}')
  if atom is not None:
    idx = atom_index(tau, atom)
  Q = _bases[basis](tau, df)
  if scale:
    Q = standardize(Q)
  if atom is not None:
    # Important: the indicator column is not smoothed or standardized, so g
    # can put arbitrary mass on the atom
    d = np.zeros((tau.shape[0], 1))
    d[idx] = 1
    Q = np.hstack([Q, d])
  return Q
