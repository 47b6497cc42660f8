"""Empirical Bayes deconvolution

Estimate g, where

x_i ~ p(. | theta_i)
theta_i ~ g(.)

p is a Poisson, Normal, or Binomial likelihood, and g is a discrete
distribution on a fixed grid, modeled as an exponential family with a smooth
(natural spline or polynomial) sufficient statistic (Efron 2016).

We provide a single-sample solver under ebdeconv. We additionally provide a
batched solver for fitting many samples which share a grid and sample space
(e.g., bootstrap replicates) in parallel on a GPU in ebdeconv.sgd, and a
wrapper around the R package deconvolveR in ebdeconv.wrappers (which require
explicit imports).

"""
from .basis import design_matrix, ns, poly
from .fit import DeconvResult, deconv
from .exceptions import *
from .kernels import density, kernel
from .bayes import marginal, posterior, posterior_matrix, posterior_mean
