"""Test package for physlab.

This package contains unit tests for the physics cores, scoring, particles
and audio synthesis, plus headless integration tests that drive each
simulation through its host and the pygame UI shell.  The tests run with
pygame's dummy video and audio drivers so no real window opens.  To run
them, execute ``pytest`` from the project root.
"""
