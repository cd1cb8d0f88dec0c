"""Street-food supply marketplace: vendors, distributors and delivery agents."""

__version__ = "1.0.0"
