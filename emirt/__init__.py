"""Expectation-maximization update steps for binary, ordinal, dynamic, hierarchical, Poisson and endorsement IRT models."""

__version__ = "0.1.0"