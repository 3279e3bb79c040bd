"""Test package initialiser.

What:
  Marks ``tests`` as a package so pytest can import shared helpers from nested
  modules.

Invariants & Safety:
  - The file must remain side-effect free.
"""
