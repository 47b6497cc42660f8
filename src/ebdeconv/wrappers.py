"""Wrapper around the R package deconvolveR

deconvolveR implements the same model (Efron 2016), with the norm penalty.
This is useful to cross-check fits.

"""
import numpy as np
import pandas as pd
import rpy2.robjects as ro
import rpy2.robjects.packages

def deconv_r(tau, x, family='poisson', c0=1, df=5, atom=None, ignore_zero=False,
             scale=True, n=40, **kwargs):
  """Return stats table, MLE, and S statistic from deconvolveR::deconv

  tau - array-like [m,]
  x - array-like [N,] (or [N, 2] of (trials, successes) for binomial)
  kwargs - arguments to deconvolveR::deconv

  """
  deconvolveR = rpy2.robjects.packages.importr('deconvolveR')
  family = str(family).capitalize()
  if atom is not None:
    kwargs['deltaAt'] = float(atom)
  x = np.asarray(x, dtype=float)
  if family == 'Binomial':
    if x.ndim != 2 or x.shape[1] != 2:
      raise ValueError(f'shape mismatch (x): expected (N, 2), got {x.shape}')
    # Important: R matrices are column major
    X = ro.r.matrix(ro.FloatVector(x.ravel(order='F')), nrow=x.shape[0])
  else:
    X = ro.FloatVector(x)
  fit = deconvolveR.deconv(
    tau=ro.FloatVector(np.asarray(tau, dtype=float)),
    X=X,
    family=family,
    c0=c0,
    pDegree=df,
    ignoreZero=ignore_zero,
    scale=scale,
    n=n,
    **kwargs)
  stats = pd.DataFrame(np.array(fit.rx2('stats')),
                       columns=['theta', 'g', 'SE.g', 'G', 'SE.G', 'Bias.g'])
  return stats, np.array(fit.rx2('mle')).ravel(), np.array(fit.rx2('S')).item()
