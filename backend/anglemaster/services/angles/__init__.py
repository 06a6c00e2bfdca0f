"""Angle Master domain services: board generation, trial and level state machines.

The geometry, generator, dedup, trial and level modules are plain Python
with no Flask dependency. Scheduling, persistence and the run registry sit
on top of them and are what HTTP routes and socket handlers import.
"""
