import numpy as np
import pytest
import scipy.stats as st

def _simulate_poisson(n=1000, seed=0):
  """Efron (2016) Poisson example: theta ~ chi^2_10 truncated to [1, 32]"""
  tau = np.arange(1, 33, dtype=float)
  g = st.chi2(df=10).pdf(tau)
  g /= g.sum()
  np.random.seed(seed)
  theta = np.random.choice(tau, size=n, p=g)
  x = np.random.poisson(lam=theta)
  return x, tau, g

@pytest.fixture
def simulate_poisson():
  return _simulate_poisson()

@pytest.fixture
def simulate_binomial():
  """Binomial data dominated by small success probabilities"""
  n = 844
  np.random.seed(1)
  tau = np.linspace(0.01, 0.99, 99)
  z = np.random.uniform(size=n) < 0.8
  theta = np.where(z, np.random.beta(1, 15, size=n), np.random.beta(4, 6, size=n))
  trials = np.random.randint(5, 50, size=n)
  x = np.random.binomial(trials, theta)
  return x, trials, tau

@pytest.fixture
def simulate_normal_atom():
  """90% of true means are 0, 10% are N(-3, 1)"""
  n = 2000
  np.random.seed(2)
  tau = np.arange(-6, 3.25, 0.25)
  z = np.random.uniform(size=n) < 0.9
  theta = np.where(z, 0, np.random.normal(-3, 1, size=n))
  x = np.random.normal(theta, 1)
  return x, tau
