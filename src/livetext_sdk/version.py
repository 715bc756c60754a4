"""Version information for the LiveText Python SDK"""

__version__ = "0.1.0"
