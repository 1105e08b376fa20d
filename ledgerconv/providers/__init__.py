"""Provider converters.

One converter per supported export dialect (True Wealth, Bitpanda),
selected by name through ``ledgerconv.providers.registry``.
"""
