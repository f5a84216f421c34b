# python
"""dropshare package"""
__version__ = "0.1"

from dropshare.env import load_env

# Load .env values at import time so configuration relies on python-dotenv instead of manual parsing.
load_env()
