"""Momentum: goal, task and habit tracking with a personal insight engine."""
