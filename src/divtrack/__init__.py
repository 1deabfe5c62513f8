"""divtrack: dividend portfolio tracking, watchlists and goal projections."""

__version__ = "0.1.0"
