"""Test configuration for ensuring package imports."""

import os
import sys

# Make ``regdesk`` importable when tests run from a plain checkout.
ROOT_DIR = os.path.abspath(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)
