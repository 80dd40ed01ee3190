"""
HedgeLab
========

Key-rate sensitivities and least-squares hedge construction for
fixed-income instruments. See :mod:`hedgelab.engine`.
"""

__version__ = "0.1.0"
