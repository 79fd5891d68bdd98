"""
===============================================================================
COSMOGEN - Simulation Module
===============================================================================
Statistical campaigns over the generator.

Submodules:
    monte_carlo -- GenerationMonteCarlo, repeated seeded generation runs
===============================================================================
"""
