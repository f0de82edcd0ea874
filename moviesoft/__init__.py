"""Movie Soft - movie catalog with uploads, gallery and admin pages"""

__version__ = "1.0.0"
