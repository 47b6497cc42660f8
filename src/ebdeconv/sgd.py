"""Empirical Bayes deconvolution via SGD

This implementation is specialized for fitting B deconvolution problems in
parallel, where every problem is a histogram over the same sample space and g
is supported on the same grid (e.g., parametric bootstrap replicates, or
repeated simulations). The design matrix and the kernel matrix are built once
and shared.

"""
import numpy as np
import torch
import torch.utils.data as td

import ebdeconv.basis
import ebdeconv.kernels

def _device():
  if torch.cuda.is_available():
    return 'cuda'
  else:
    return 'cpu'

def _llik(y, Q, P, a):
  """Return ln p(y_b | a_b) (up to a constant)

  y - [b, K] tensor
  Q - [m, p] tensor
  P - [K, m] tensor
  a - [b, p] tensor

  """
  g = torch.softmax(torch.matmul(a, Q.T), dim=1)
  f = torch.matmul(g, P.T)
  # Important: xlogy is needed for empty cells of the histogram
  return torch.xlogy(y, f).sum(dim=1)

def _ridge(a, c0, mask):
  return c0 * torch.square(a * mask).sum(dim=1)

def _norm(a, c0, mask):
  return c0 * torch.sqrt(torch.square(a * mask).sum(dim=1))

_penalties = {
  'ridge': _ridge,
  'norm': _norm,
}

def _check_args(counts, support, init, p, lr, batch_size, max_epochs):
  """Check counts and return a Dataset"""
  counts = np.asarray(counts, dtype=float)
  if counts.ndim != 2:
    raise ValueError(f'shape mismatch (counts): expected 2d array, got {counts.shape}')
  B, K = counts.shape
  if np.asarray(support).shape[0] != K:
    raise ValueError(f'shape mismatch (support): expected {K} rows, got {np.asarray(support).shape[0]}')
  if (counts < 0).any() or not np.isfinite(counts).all():
    raise ValueError('expected non-negative counts')
  if init is not None and init.shape != (B, p):
    raise ValueError(f'shape mismatch (init): expected {(B, p)}, got {init.shape}')
  if lr <= 0:
    raise ValueError('lr must be > 0')
  if batch_size is not None and batch_size < 1:
    raise ValueError('batch_size must be >= 1')
  if max_epochs < 1:
    raise ValueError('max_epochs must be >= 1')
  device = _device()
  data = td.TensorDataset(
    torch.tensor(counts, dtype=torch.double, device=device),
    torch.arange(B, device=device))
  return data, B

def _sgd(data, Q, P, a, penalty, lr=1e-2, batch_size=100, max_epochs=100, verbose=False, trace=False):
  """SGD subroutine

  data - Dataset of (counts, index)
  Q - [m, p] tensor
  P - [K, m] tensor
  a - [B, p] tensor
  penalty - function returning [b,] tensor

  """
  data = td.DataLoader(data, batch_size=batch_size, shuffle=False)
  opt = torch.optim.RMSprop([a], lr=lr)
  loss_trace = []
  for epoch in range(max_epochs):
    for (y, idx) in data:
      opt.zero_grad()
      loss = (-_llik(y, Q, P, a[idx]) + penalty(a[idx])).sum()
      if torch.isnan(loss):
        raise RuntimeError('nan loss')
      loss.backward()
      opt.step()
    if verbose:
      print(f'Epoch {epoch}:', loss.item())
    if trace:
      loss_trace.append(loss.item())
  with torch.no_grad():
    y = data.dataset.tensors[0]
    loss = -_llik(y, Q, P, a) + penalty(a)
    g = torch.softmax(torch.matmul(a, Q.T), dim=1)
  result = [a.detach().cpu().numpy(), g.cpu().numpy(), loss.cpu().numpy()]
  if trace:
    result.append(loss_trace)
  return result

def deconv_batch(tau, counts, support, family='poisson', c0=1, df=5, atom=None,
                 ignore_zero=False, scale=True, width=None, basis='ns',
                 penalty='ridge', init=None, lr=1e-2, batch_size=None,
                 max_epochs=1000, verbose=False, trace=False):
  """Return fitted coefficients, fitted g, and negative penalized log
  likelihood of each histogram

  Returns a [B, p], g [B, m], loss [B,] (and loss trace per epoch if trace)

  tau - array-like [m,]
  counts - array-like [B, K]
  support - array-like [K,] ([K, 2] for binomial)
  width - bin width, if support are normal bin centers
  batch_size - number of histograms per minibatch (default: B)

  """
  Q = ebdeconv.basis.design_matrix(tau, df=df, basis=basis, atom=atom, scale=scale)
  P = ebdeconv.kernels.kernel(family, tau, support, ignore_zero=ignore_zero, width=width)
  if penalty not in _penalties:
    raise ValueError(f'penalty must be one of {sorted(_penalties)}, got {penalty!r}')
  p = Q.shape[1]
  data, B = _check_args(counts, support, init, p, lr, batch_size, max_epochs)
  if batch_size is None:
    batch_size = B
  device = _device()
  if init is None:
    # Important: the norm penalty is not differentiable at zero
    init = np.ones((B, p)) if penalty == 'norm' else np.zeros((B, p))
  a = torch.tensor(init, dtype=torch.double, requires_grad=True, device=device)
  mask = np.ones(p)
  if atom is not None:
    mask[-1] = 0
  mask = torch.tensor(mask, dtype=torch.double, device=device)
  pen = lambda a: _penalties[penalty](a, c0, mask)
  return _sgd(data,
              torch.tensor(Q, dtype=torch.double, device=device),
              torch.tensor(P, dtype=torch.double, device=device),
              a, pen, lr=lr, batch_size=batch_size, max_epochs=max_epochs,
              verbose=verbose, trace=trace)
