import setuptools

setuptools.setup(
  name='ebdeconv',
  description='Empirical Bayes deconvolution of discrete mixing distributions',
  version='0.1',
  url='https://www.github.com/aksarkar/ebdeconv',
  author='Abhishek Sarkar',
  author_email='aksarkar@uchicago.edu',
  license='MIT',
  install_requires=[
    'numpy',
    'pandas',
    'scipy',
    'torch',
  ],
  extras_require={
    'r': ['rpy2'],
    'test': ['pytest'],
  },
  packages=setuptools.find_packages('src'),
  package_dir={'': 'src'},
)
