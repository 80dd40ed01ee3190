"""
HedgeLab Unit Tests
===================

Test Modules
------------
test_linear_solver
    Gauss-Jordan elimination with partial pivoting.
test_ridge
    Normal equations and ridge-regularized least squares.
test_key_rate
    Tent weights and localized key-rate sensitivities.
test_curves
    Nelson-Siegel-Svensson and PCHIP pillar curves.
test_instruments
    Fixed-coupon bond schedules, price and DV01.
test_hedging
    End-to-end hedge construction and residual diagnostics.
test_config
    Environment-driven settings.
test_errors
    Calculation results and error kinds.

Running Tests
-------------
Execute all tests with pytest::

    pytest hedgelab/unit_tests/ -v
"""
