"""
Storehouse: aggregate item storage across many independent backends.

The package builds a single logical index of fungible item quantities held in
a network of storage backends and moves items between that aggregate and the
operating actor's own inventory.
"""

__version__ = "0.1.0"
