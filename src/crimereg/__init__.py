"""
Crimereg: Violent Crime Regression Analysis.

This package loads the Communities and Crime table, caps outliers,
prunes multicollinear and insignificant predictors, and evaluates
linear models of violent crimes per population.
"""

from importlib.metadata import version

__version__ = version("crimereg")

__all__ = ["__version__"]
