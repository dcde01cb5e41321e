"""Point-of-sale and inventory tracking for a motorbike spare parts shop."""

__version__ = '1.0.0'
