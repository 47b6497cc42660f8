"""Errors and warnings raised by the deconvolution routines

Input validation failures are ValueError subclasses, raised before any
computation. Numerical trouble (non-convergence, singular curvature) is
reported through warnings, because the fitted g is still usable.

"""

class InvalidGrid(ValueError):
  """Grid is not finite and strictly increasing, or is too small for the basis"""

class InvalidAtom(ValueError):
  """Requested point mass location is not a grid point"""

class DomainMismatch(ValueError):
  """Observation (or grid value) is outside the support of the family"""

class ConvergenceWarning(RuntimeWarning):
  pass

class SingularCurvatureWarning(RuntimeWarning):
  pass
