#!/usr/bin/env python3
"""
e5 module entry point
Allows running: python3 -m e5
"""

from e5.cli import main

if __name__ == '__main__':
    main()
