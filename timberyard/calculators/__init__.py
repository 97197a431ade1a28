"""
Category calculators: deterministic pricing per product category.

Pure Python math. No I/O.
Given a base price (or rate), a validated option selection and dimensions,
produce a full-precision unit price.
"""
