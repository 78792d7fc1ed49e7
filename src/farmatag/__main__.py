"""
Entry point for running the FarmaTag scanner tools as a module.

Usage:
    python -m farmatag --decode PAYLOAD
    python -m farmatag --replay session.yaml
"""

from .cli import main

if __name__ == "__main__":
    main()
