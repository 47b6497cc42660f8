"""Reduce observations to a histogram over the sample space

Every fit works on (support, counts). Raw observations and pre-aggregated
histograms that describe the same data reduce to the same histogram, and
therefore give the same fit.

"""
import collections
import numpy as np

from .exceptions import DomainMismatch
from .kernels import check_family

# width is None unless support are bin centers of a normal histogram.
# full_support is True if support enumerates the sample space, which determines
# the expected counts used for Fisher information.
Histogram = collections.namedtuple('Histogram', ['support', 'counts', 'width', 'full_support'])

def _check_integer(x, name):
  x = np.asarray(x)
  if x.ndim != 1:
    raise ValueError(f'shape mismatch ({name}): expected 1d array, got {x.shape}')
  bad = ~np.isfinite(x) | (np.floor(x) != x) | (x < 0)
  if bad.any():
    idx = np.where(bad)[0][0]
    raise DomainMismatch(f'expected non-negative integer {name}, got {x[idx]} at index {idx}')
  return x.astype(int)

def _check_counts(counts, support):
  counts = np.asarray(counts, dtype=float)
  if counts.ndim != 1 or counts.shape[0] != support.shape[0]:
    raise ValueError(f'shape mismatch (counts): expected {(support.shape[0],)}, got {counts.shape}')
  if (~np.isfinite(counts) | (counts < 0)).any():
    idx = np.where(~np.isfinite(counts) | (counts < 0))[0][0]
    raise DomainMismatch(f'expected non-negative counts, got {counts[idx]} at index {idx}')
  if not counts.sum() > 0:
    raise ValueError('expected at least one observation')
  return counts

def _poisson(x, counts, support, n, ignore_zero):
  if x is not None:
    x = _check_integer(x, 'x')
    if n is None:
      n = x.max()
    elif (x > n).any():
      idx = np.where(x > n)[0][0]
      raise DomainMismatch(f'observation {x[idx]} at index {idx} exceeds n ({n})')
    support = np.arange(n + 1)
    counts = np.bincount(x, minlength=n + 1).astype(float)
  else:
    if support is None:
      support = np.arange(np.asarray(counts).shape[0])
    support = _check_integer(support, 'support')
    counts = _check_counts(counts, support)
    if np.unique(support).shape != support.shape:
      raise ValueError('expected distinct values in support')
    if n is None:
      n = support.max()
    elif (support > n).any():
      idx = np.where(support > n)[0][0]
      raise DomainMismatch(f'support value {support[idx]} at index {idx} exceeds n ({n})')
    # Important: expected counts are taken over the whole sample space 0, ..., n,
    # so a sparse histogram is filled in with empty cells
    y = np.zeros(n + 1)
    y[support] = counts
    support = np.arange(n + 1)
    counts = y
  if ignore_zero:
    # Zero counts are not informative under the zero-truncated kernel
    keep = support > 0
    support = support[keep]
    counts = counts[keep]
    if not counts.sum() > 0:
      raise ValueError('expected at least one non-zero observation')
  return Histogram(support, counts, None, True)

def _normal(x, counts, support, bins):
  if x is not None:
    x = np.asarray(x, dtype=float)
    if x.ndim != 1:
      raise ValueError(f'shape mismatch (x): expected 1d array, got {x.shape}')
    if not np.isfinite(x).all():
      idx = np.where(~np.isfinite(x))[0][0]
      raise DomainMismatch(f'non-finite observation at index {idx}: {x[idx]}')
    if bins is None:
      support, counts = np.unique(x, return_counts=True)
      return Histogram(support, counts.astype(float), None, False)
    counts, edges = np.histogram(x, bins=bins)
    width = edges[1] - edges[0]
    return Histogram(edges[:-1] + width / 2, counts.astype(float), width, True)
  if support is None:
    raise ValueError('support must be specified with counts for family normal')
  support = np.asarray(support, dtype=float)
  counts = _check_counts(counts, support)
  width = None
  if bins is not None and support.shape[0] > 1:
    d = np.diff(support)
    if not np.allclose(d, d[0]):
      raise ValueError('expected equally spaced bin centers in support')
    width = d[0]
  return Histogram(support, counts, width, bins is not None)

def _check_records(trials, x):
  bad = (trials < 1) | (x > trials)
  if bad.any():
    idx = np.where(bad)[0][0]
    raise DomainMismatch(f'invalid record at index {idx}: {x[idx]} successes out of {trials[idx]} trials')

def _binomial(x, trials, counts, support):
  if x is not None:
    if trials is None:
      raise ValueError('trials must be specified for family binomial')
    x = _check_integer(x, 'x')
    trials = _check_integer(trials, 'trials')
    if trials.shape != x.shape:
      raise ValueError(f'shape mismatch (trials): expected {x.shape}, got {trials.shape}')
    _check_records(trials, x)
    data = np.stack([trials, x], axis=1)
    support, counts = np.unique(data, axis=0, return_counts=True)
    counts = counts.astype(float)
  else:
    if support is None:
      raise ValueError('support must be specified with counts for family binomial')
    support = np.asarray(support)
    if support.ndim != 2 or support.shape[1] != 2:
      raise ValueError(f'shape mismatch (support): expected (K, 2), got {support.shape}')
    support = np.stack([_check_integer(support[:,0], 'trials'), _check_integer(support[:,1], 'x')], axis=1)
    _check_records(support[:,0], support[:,1])
    counts = _check_counts(counts, support)
  return Histogram(support, counts, None, False)

def tabulate(family, x=None, trials=None, counts=None, support=None, n=None,
             ignore_zero=False, bins=40):
  """Return Histogram of the observations

  Specify either raw observations x (with trials for binomial), or counts over
  support.

  x - array-like [N,] (successes for binomial)
  trials - array-like [N,] (binomial only)
  counts - array-like [K,]
  support - array-like [K,] ([K, 2] of (trials, successes) for binomial). For
    poisson, defaults to 0, ..., K - 1
  n - largest value of the poisson sample space (default: the largest observed
    value). Poisson histograms are filled in to cover 0, ..., n
  ignore_zero - drop zero counts (poisson only)
  bins - number of bins for normal observations (None: use the observed
    values). With counts, bins is not None means support are bin centers

  """
  family = check_family(family)
  if (x is None) == (counts is None):
    raise ValueError('exactly one of x or counts must be specified')
  if x is not None and not np.asarray(x).size:
    raise ValueError('expected at least one observation')
  if ignore_zero and family != 'poisson':
    raise ValueError('ignore_zero only applies to family poisson')
  if family == 'poisson':
    return _poisson(x, counts, support, n, ignore_zero)
  elif family == 'normal':
    return _normal(x, counts, support, bins)
  else:
    return _binomial(x, trials, counts, support)
