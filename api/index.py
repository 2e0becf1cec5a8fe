from mangum import Mangum
import sys
import os

# Serverless entry point; main.py lives one directory up
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from main import app

# The scheduler and table creation run in the lifespan, so keep it enabled
handler = Mangum(app, lifespan="auto")
