"""
Rule engine — condition evaluation, selection, accumulation, minimum charge
and rounding. Everything in here is pure; catalogs are never mutated.
"""
