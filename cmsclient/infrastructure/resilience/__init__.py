"""API Resilience Implementations.

Contains the monthly request quota accounting applied before any request
reaches the network.
Bounded Context: API Resilience
"""
